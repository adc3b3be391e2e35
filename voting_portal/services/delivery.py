"""Out-of-band delivery of one-time login codes."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

import httpx

from voting_portal.core.config import Settings
from voting_portal.services.errors import DeliveryFailed

logger = logging.getLogger(__name__)


class CodeDelivery(Protocol):
    def deliver(self, contact: str, code: str, display_name: str) -> None:
        """Send ``code`` to ``contact`` or raise :class:`DeliveryFailed`."""


def _render_text(code: str, display_name: str, ttl_minutes: int) -> str:
    return (
        f"Hello {display_name},\n\n"
        f"Your login code is: {code}\n\n"
        f"This code is valid for {ttl_minutes} minutes only.\n"
        "If you did not request this code, please ignore this email.\n"
    )


def _render_html(code: str, display_name: str, ttl_minutes: int) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        "<h2>University Voting Portal</h2>"
        f"<p>Hello <strong>{display_name}</strong>,</p>"
        "<p>Your login code is:</p>"
        f'<h1 style="letter-spacing: 5px;">{code}</h1>'
        f"<p><strong>This code is valid for {ttl_minutes} minutes only.</strong></p>"
        "<p>If you did not request this code, please ignore this email.</p>"
        "</div>"
    )


class SmtpCodeDelivery:
    """Send codes by email through an authenticated SMTP relay."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _build_message(self, contact: str, code: str, display_name: str) -> EmailMessage:
        ttl_minutes = max(1, self._settings.login_code_ttl_seconds // 60)
        message = EmailMessage()
        message["From"] = self._settings.mail_sender or self._settings.smtp_username or ""
        message["To"] = contact
        message["Subject"] = self._settings.mail_subject
        message.set_content(_render_text(code, display_name, ttl_minutes))
        message.add_alternative(_render_html(code, display_name, ttl_minutes), subtype="html")
        return message

    def deliver(self, contact: str, code: str, display_name: str) -> None:
        settings = self._settings
        if not settings.smtp_username or not settings.smtp_password:
            raise DeliveryFailed("SMTP credentials are not configured")

        message = self._build_message(contact, code, display_name)
        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds) as smtp:
                if settings.smtp_use_starttls:
                    smtp.starttls()
                smtp.login(settings.smtp_username, settings.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("login code email failed", extra={"error": str(exc)})
            raise DeliveryFailed() from exc
        logger.info("login code email sent", extra={"display_name": display_name})


class HttpRelayCodeDelivery:
    """Post codes to an HTTP mail relay."""

    def __init__(self, settings: Settings, *, client: httpx.Client | None = None) -> None:
        self._settings = settings
        self._url = settings.mail_relay_url
        self._client = client or httpx.Client()
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def deliver(self, contact: str, code: str, display_name: str) -> None:
        ttl_minutes = max(1, self._settings.login_code_ttl_seconds // 60)
        headers: dict[str, str] = {}
        if self._settings.mail_relay_token:
            headers["Authorization"] = f"Bearer {self._settings.mail_relay_token}"
        payload = {
            "to": contact,
            "subject": self._settings.mail_subject,
            "text": _render_text(code, display_name, ttl_minutes),
            "html": _render_html(code, display_name, ttl_minutes),
        }
        try:
            response = self._client.post(
                self._url,
                json=payload,
                headers=headers,
                timeout=self._settings.mail_relay_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("login code relay failed", extra={"error": str(exc)})
            raise DeliveryFailed() from exc
        logger.info("login code relayed", extra={"display_name": display_name})


def build_code_delivery(settings: Settings) -> CodeDelivery:
    if settings.code_delivery_backend == "http":
        return HttpRelayCodeDelivery(settings)
    return SmtpCodeDelivery(settings)


__all__ = ["CodeDelivery", "HttpRelayCodeDelivery", "SmtpCodeDelivery", "build_code_delivery"]
