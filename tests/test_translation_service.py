"""
Heritage Numérique Backend — Translation Service Unit Tests (Mocked)
=====================================================================

What:  TranslationService with the provider replaced by httpx.MockTransport.
How:   httpx.AsyncClient is patched in the service module so every request
       goes to an in-process handler; tenacity waits are disabled.

What we test:
    ✅ Provider success, cache hits skip the provider
    ✅ Bambara comes from the glossary without any HTTP call
    ✅ Transient failures are retried, then surface as TranslationServiceError
    ✅ Circuit breaker opens after consecutive failures and rejects instantly
    ✅ translate_all leaves out a language that fails
    ❌ Real provider calls
"""

import time

import httpx
import pytest
from tenacity import wait_none

from heritage.config import settings
from heritage.exceptions import CircuitBreakerOpenError, TranslationServiceError
from heritage.services import translation_service as translation_module
from heritage.services.translation_service import (
    CircuitBreaker,
    TranslationService,
    translate_to_bambara,
)


class FakeProvider:
    """Counts calls and answers with a fixed status and translation."""

    def __init__(self, status_code=200, translated="Once upon a time"):
        self.status_code = status_code
        self.translated = translated
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"responseStatus": self.status_code})
        return httpx.Response(200, json={"responseData": {"translatedText": self.translated}})


@pytest.fixture
def provider(monkeypatch):
    fake = FakeProvider()
    real_client = httpx.AsyncClient

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(fake), **kwargs)

    monkeypatch.setattr(translation_module.httpx, "AsyncClient", _client)
    monkeypatch.setattr(TranslationService._request_translation.retry, "wait", wait_none())
    return fake


class TestCircuitBreaker:

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.failure_count == 0

    def test_opens_at_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(2):
            cb.record_failure()
        assert cb.state == CircuitBreaker.CLOSED
        cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN

    def test_open_circuit_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        cb.record_failure()
        with pytest.raises(CircuitBreakerOpenError):
            cb.can_execute()

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_half_open_failure_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=0)
        cb.state = CircuitBreaker.HALF_OPEN
        cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN

    def test_success_closes_and_resets(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        cb.record_success()
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.failure_count == 0


class TestBambaraGlossary:

    def test_phrase_and_words_replaced(self):
        assert translate_to_bambara("Il était une fois un roi") == "A ka kɛ ka kɛ un mansa"

    def test_capitalization_carried_over(self):
        assert translate_to_bambara("Famille et village") == "Denbaya et dugu"

    def test_unknown_words_kept(self):
        assert translate_to_bambara("Bonjour") == "Bonjour"


class TestTranslationService:

    @pytest.mark.asyncio
    async def test_translate_success_and_cache(self, provider):
        service = TranslationService(api_url="https://translator.test/get")

        first = await service.translate("Il était une fois", "fr", "en")
        second = await service.translate("Il était une fois", "fr", "en")

        assert first == second == "Once upon a time"
        assert provider.calls == 1
        assert service.cache_size() == 1

    @pytest.mark.asyncio
    async def test_bambara_needs_no_provider(self, provider):
        service = TranslationService(api_url="https://translator.test/get")

        assert await service.translate("Le roi", "fr", "bm") == "Le mansa"
        assert provider.calls == 0

    @pytest.mark.asyncio
    async def test_same_language_and_blank_text_untouched(self, provider):
        service = TranslationService(api_url="https://translator.test/get")

        assert await service.translate("Bonjour", "fr", "fr") == "Bonjour"
        assert await service.translate("   ", "fr", "en") == "   "
        assert provider.calls == 0

    @pytest.mark.asyncio
    async def test_transient_failures_retried_then_reported(self, provider):
        provider.status_code = 503
        service = TranslationService(api_url="https://translator.test/get")

        with pytest.raises(TranslationServiceError):
            await service.translate("Bonjour", "fr", "en")

        assert provider.calls == settings.retry_max_attempts
        assert service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, provider):
        provider.status_code = 400
        service = TranslationService(api_url="https://translator.test/get")

        with pytest.raises(TranslationServiceError):
            await service.translate("Bonjour", "fr", "en")

        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_open_circuit_skips_provider(self, provider):
        service = TranslationService(api_url="https://translator.test/get")
        for _ in range(service.circuit_breaker.failure_threshold):
            service.circuit_breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            await service.translate("Bonjour", "fr", "en")
        assert provider.calls == 0

    @pytest.mark.asyncio
    async def test_translate_all_drops_failed_language(self, provider):
        provider.status_code = 500
        service = TranslationService(api_url="https://translator.test/get")

        result = await service.translate_all("La famille")

        assert result == {"fr": "La famille", "bm": "La denbaya"}

    @pytest.mark.asyncio
    async def test_translate_all_of_nothing(self, provider):
        service = TranslationService(api_url="https://translator.test/get")
        assert await service.translate_all(None) == {}

    @pytest.mark.asyncio
    async def test_cache_drops_least_recently_used(self, provider):
        service = TranslationService(api_url="https://translator.test/get", cache_limit=2)

        await service.translate("Le roi", "fr", "bm")
        await service.translate("La famille", "fr", "bm")
        await service.translate("Le roi", "fr", "bm")
        await service.translate("Le village", "fr", "bm")

        assert service.cache_size() == 2
        assert ("Le roi", "fr", "bm") in service._cache
        assert ("La famille", "fr", "bm") not in service._cache
