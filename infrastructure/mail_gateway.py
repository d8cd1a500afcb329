"""SMTP adapter for outgoing notification e-mails."""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from config import Settings
from services.errors import MailDeliveryError

logger = logging.getLogger(__name__)


@dataclass
class MailGateway:
    """Sends HTML mail through the configured SMTP server."""

    settings: Settings

    @property
    def sender(self) -> str:
        return (
            self.settings.smtp_from
            or self.settings.smtp_username
            or f"no-reply@{self.settings.smtp_host}"
        )

    def build_message(
        self, to: str, subject: str, html: str, text: str | None = None
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        if text:
            msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send_html(
        self, to: str, subject: str, html: str, text: str | None = None
    ) -> None:
        """Deliver one message; raises :class:`MailDeliveryError` on failure."""
        msg = self.build_message(to, subject, html, text)
        settings = self.settings
        try:
            with smtplib.SMTP(
                settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout
            ) as server:
                if settings.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if settings.smtp_username and settings.smtp_password:
                    server.login(settings.smtp_username, settings.smtp_password)
                server.sendmail(self.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"SMTP delivery to {to} failed: {exc}") from exc
        logger.info("Mail sent to %s: %s", to, subject)


__all__ = ["MailGateway"]
