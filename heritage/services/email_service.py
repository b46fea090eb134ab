"""
Heritage Numérique Backend — Email Service
===========================================

What:  Mails invitation codes to invitees over SMTP.
How:   A plain-text + HTML multipart message sent with smtplib, run in a
       worker thread so the event loop is not blocked. Without SMTP_HOST
       the message is logged and nothing is sent.

Delivery failures are logged and reported as False; the invitation itself
stays valid and its code remains visible to the sender.
"""

import asyncio
import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from heritage.config import settings

logger = logging.getLogger(__name__)


class EmailService:

    def build_invitation(
        self,
        to_email: str,
        invitee_name: str,
        family_name: str,
        sender_name: str,
        code: str,
        expires_at: datetime,
    ) -> MIMEMultipart:
        expiry = expires_at.strftime("%d/%m/%Y %H:%M UTC")
        text_body = (
            f"Hello {invitee_name},\n\n"
            f"{sender_name} invited you to join the family {family_name} on Heritage Numérique.\n\n"
            f"Your invitation code: {code}\n\n"
            "Create an account with this code, or sign in and redeem it if you already have one.\n"
            f"The code expires on {expiry}.\n"
        )
        html_body = (
            "<html><body>"
            f"<p>Hello {invitee_name},</p>"
            f"<p>{sender_name} invited you to join the family <strong>{family_name}</strong> "
            "on Heritage Numérique.</p>"
            f"<p style=\"font-size: 20px; letter-spacing: 4px;\"><strong>{code}</strong></p>"
            "<p>Create an account with this code, or sign in and redeem it if you already have one.</p>"
            f"<p>The code expires on {expiry}.</p>"
            "</body></html>"
        )

        message = MIMEMultipart("alternative")
        message["Subject"] = f"Invitation to join {family_name}"
        message["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
        message["To"] = to_email
        message.attach(MIMEText(text_body, "plain", "utf-8"))
        message.attach(MIMEText(html_body, "html", "utf-8"))
        return message

    def _deliver(self, message: MIMEMultipart) -> None:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(message)

    async def send_invitation(
        self,
        to_email: str,
        invitee_name: str,
        family_name: str,
        sender_name: str,
        code: str,
        expires_at: datetime,
    ) -> bool:
        if not settings.smtp_configured:
            logger.info(
                "SMTP not configured; invitation code for %s (family %s) not mailed",
                to_email,
                family_name,
            )
            return False

        message = self.build_invitation(to_email, invitee_name, family_name, sender_name, code, expires_at)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Invitation email to %s failed: %s", to_email, e)
            return False

        logger.info("Invitation email sent to %s for family %s", to_email, family_name)
        return True


# ── Singleton Instance ────────────────────────────────────────────────────
email_service = EmailService()
