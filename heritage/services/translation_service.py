"""
Heritage Numérique Backend — Translation Service
=================================================

What:  Translates content titles and descriptions between French, English
       and Bambara for the public catalogue.
How:   French ↔ English goes to a MyMemory-compatible HTTP endpoint
       (GET ?q=<text>&langpair=<src>|<tgt>) through httpx. The provider has
       no Bambara model, so Bambara is produced from a local glossary of
       common heritage vocabulary. Successful translations are cached in
       memory per (text, source, target), at most TRANSLATION_CACHE_SIZE
       entries; the least recently used entry is dropped first.
Who:   Called by ContentService.translate_content for
       GET /public/contents/{id}/translations.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient
       failures (network errors, 429 and 5xx responses)
    2. Circuit breaker so a dead provider fails fast instead of stacking
       up retries on every catalogue request
    3. Per-request timeout (settings.translation_timeout)
"""

import logging
import re
import time
import uuid
from collections import OrderedDict
from typing import Dict, Optional, Tuple

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from heritage.config import settings
from heritage.exceptions import CircuitBreakerOpenError, TranslationServiceError
from heritage.models.enums import Language

logger = logging.getLogger(__name__)

SOURCE_LANGUAGE = Language.FR.value

# French → Bambara glossary. Keys are lowercase; capitalization of the
# matched word is carried over to the replacement.
BAMBARA_GLOSSARY: Dict[str, str] = {
    "il était une fois": "a ka kɛ ka kɛ",
    "un jour": "dɔgɔkun dɔrɔn",
    "plus tard": "kɔnɔ dɔɔnin",
    "conte": "jirali",
    "histoire": "jirali",
    "lièvre": "jiri",
    "segou": "segu",
    "lieu": "jukɔrɔ",
    "région": "jamana",
    "roi": "mansa",
    "royaume": "jamana",
    "empire": "jamana",
    "peuple": "jamanaw",
    "peuples": "jamanaw",
    "sagesse": "hakili",
    "grand": "caman",
    "grande": "caman",
    "premier": "fɔlɔ",
    "première": "fɔlɔ",
    "nouveau": "dɔrɔn",
    "nouvelle": "dɔrɔn",
    "famille": "denbaya",
    "père": "fa",
    "mère": "ba",
    "enfant": "den",
    "enfants": "denw",
    "village": "dugu",
    "eau": "ji",
}

# Longest phrases first so "il était une fois" wins over single words
_GLOSSARY_PATTERN = re.compile(
    r"\b("
    + "|".join(re.escape(k) for k in sorted(BAMBARA_GLOSSARY, key=len, reverse=True))
    + r")\b",
    re.IGNORECASE,
)


def translate_to_bambara(text: str) -> str:
    """Replace every glossary term in `text`; other words are kept as-is."""

    def _replace(match: "re.Match[str]") -> str:
        word = match.group(0)
        replacement = BAMBARA_GLOSSARY[word.lower()]
        if word[0].isupper():
            return replacement[0].upper() + replacement[1:]
        return replacement

    return _GLOSSARY_PATTERN.sub(_replace, text)


def _is_transient(exc: BaseException) -> bool:
    """Network failures, rate limiting and provider 5xx are worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════


class CircuitBreaker:
    """
    Circuit breaker guarding the translation provider.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; uvicorn async workers share a single process.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if the request can proceed.
        Raises CircuitBreakerOpenError while OPEN and still recovering.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Translation Service
# ══════════════════════════════════════════════════════════════════════════


class TranslationService:
    """
    Error Handling Chain:
        provider call fails → tenacity retries transient errors
        → all retries fail → record circuit breaker failure
        → threshold reached → later calls rejected instantly
        → recovery timeout → one test call (HALF_OPEN)
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_limit: Optional[int] = None,
    ):
        self.api_url = api_url or settings.translation_api_url
        self.timeout = timeout or settings.translation_timeout
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )
        self.cache_limit = cache_limit or settings.translation_cache_size
        # least recently used first
        self._cache: "OrderedDict[Tuple[str, str, str], str]" = OrderedDict()

    async def translate(self, text: str, source: str, target: str) -> str:
        """
        Translate `text` from `source` to `target` (language codes fr/en/bm).

        Raises:
            CircuitBreakerOpenError: too many recent provider failures
            TranslationServiceError: provider failed after all retries
        """
        if not text or not text.strip() or source == target:
            return text

        key = (text, source, target)
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            return cached

        if target == Language.BM.value:
            translated = translate_to_bambara(text)
            self._remember(key, translated)
            return translated

        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        try:
            translated = await self._request_translation(text, source, target, request_id)
            self.circuit_breaker.record_success()
        except CircuitBreakerOpenError:
            raise
        except RetryError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] All translation retries exhausted: %s",
                request_id,
                str(e.last_attempt.exception()) if e.last_attempt else "Unknown error",
            )
            raise TranslationServiceError(
                message="Translation failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"request_id": request_id, "attempts": settings.retry_max_attempts},
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Translation provider error: %s", request_id, str(e))
            raise TranslationServiceError(
                message="The translation provider returned an unusable response.",
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        self._remember(key, translated)
        return translated

    def _remember(self, key: Tuple[str, str, str], translated: str) -> None:
        self._cache[key] = translated
        while len(self._cache) > self.cache_limit:
            self._cache.popitem(last=False)

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=False,
    )
    async def _request_translation(self, text: str, source: str, target: str, request_id: str) -> str:
        """
        One provider round-trip. Decorated separately from translate() so the
        circuit breaker check and the cache lookup are never retried.
        """
        start_time = time.time()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                self.api_url,
                params={"q": text, "langpair": f"{source}|{target}"},
            )
            response.raise_for_status()
            payload = response.json()

        translated = payload["responseData"]["translatedText"]
        if not isinstance(translated, str) or not translated.strip():
            raise ValueError("empty translation")

        logger.info(
            "[%s] Translated %d chars %s→%s in %.0fms",
            request_id,
            len(text),
            source,
            target,
            (time.time() - start_time) * 1000,
        )
        return translated

    async def translate_all(self, text: Optional[str]) -> Dict[str, str]:
        """
        Return {fr, en, bm} for a French source text. A language whose
        translation fails is left out of the map.
        """
        if not text or not text.strip():
            return {}

        translations = {SOURCE_LANGUAGE: text}
        for language in (Language.EN.value, Language.BM.value):
            try:
                translations[language] = await self.translate(text, SOURCE_LANGUAGE, language)
            except (TranslationServiceError, CircuitBreakerOpenError) as e:
                logger.warning("Skipping %s translation: %s", language, e.message)
        return translations

    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Translation cache cleared")


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the circuit breaker and cache, which must be shared across requests
translation_service = TranslationService()
