"""
Heritage Numérique Backend — Email Service Unit Tests (Mocked)
===============================================================

What:  Invitation mail delivery with smtplib.SMTP replaced by a MagicMock.

What we test:
    ✅ Without SMTP_HOST nothing is sent
    ✅ With SMTP configured: STARTTLS, login, one message to the invitee
    ✅ SMTP failures are reported as False, not raised
    ❌ A real SMTP server
"""

import smtplib
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from heritage.config import settings
from heritage.services import email_service as email_module
from heritage.services.email_service import EmailService

EXPIRES = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def _invite(service):
    return service.send_invitation(
        to_email="fanta@example.com",
        invitee_name="Fanta Keita",
        family_name="Diarra",
        sender_name="Diarra Moussa",
        code="FANTA001",
        expires_at=EXPIRES,
    )


@pytest.fixture
def smtp(monkeypatch):
    server = MagicMock()
    factory = MagicMock()
    factory.return_value.__enter__.return_value = server
    monkeypatch.setattr(email_module.smtplib, "SMTP", factory)
    return factory, server


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_port", 2525)
    monkeypatch.setattr(settings, "smtp_username", "mailer")
    monkeypatch.setattr(settings, "smtp_password", "hunter22")
    monkeypatch.setattr(settings, "smtp_use_tls", True)


@pytest.mark.asyncio
async def test_unconfigured_smtp_sends_nothing(smtp, monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "")
    factory, _ = smtp

    assert await _invite(EmailService()) is False
    factory.assert_not_called()


@pytest.mark.asyncio
async def test_invitation_is_mailed_to_the_invitee(smtp, smtp_settings):
    factory, server = smtp

    assert await _invite(EmailService()) is True

    assert factory.call_args.args == ("smtp.example.com", 2525)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer", "hunter22")
    message = server.send_message.call_args.args[0]
    assert message["To"] == "fanta@example.com"
    assert message["Subject"] == "Invitation to join Diarra"
    text = message.get_payload()[0].get_payload(decode=True).decode("utf-8")
    assert "FANTA001" in text
    assert "14/03/2026" in text


@pytest.mark.asyncio
async def test_login_is_skipped_without_username(smtp, smtp_settings, monkeypatch):
    monkeypatch.setattr(settings, "smtp_username", "")
    _, server = smtp

    assert await _invite(EmailService()) is True
    server.login.assert_not_called()
    server.send_message.assert_called_once()


@pytest.mark.asyncio
async def test_delivery_failure_returns_false(smtp, smtp_settings):
    _, server = smtp
    server.send_message.side_effect = smtplib.SMTPRecipientsRefused({"fanta@example.com": (550, b"no")})

    assert await _invite(EmailService()) is False
