"""
core/mailer.py -- Outbound email over SMTP (contact-form replies).

Uses the standard library smtplib/email packages. Two transport modes:
  STARTTLS (port 587, SMTP_STARTTLS=true) and plain/implicit-TLS via SMTP_SSL
  (port 465, SMTP_STARTTLS=false).

When SMTP_ENABLED is false the mailer logs a warning and reports the message
as not delivered instead of raising, so local development works without a
mail server. Transport failures are logged and raised as UpstreamError (502); the
contact reply is then not recorded.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from core.config import Settings
from core.errors import UpstreamError

logger = logging.getLogger("portfolio.mailer")


class Mailer:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return self._settings.smtp_enabled and bool(self._settings.smtp_host)

    def build_message(self, to_email: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        msg["To"] = to_email
        msg.set_content(body)
        return msg

    def send(self, to_email: str, subject: str, body: str) -> bool:
        """Send a plain-text email. Returns False if SMTP is disabled."""
        if not self.enabled:
            logger.warning("SMTP disabled, email to %s not sent (subject=%r)", to_email, subject)
            return False

        message = self.build_message(to_email, subject, body)
        s = self._settings
        try:
            if s.smtp_starttls:
                with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=10) as server:
                    server.starttls(context=ssl.create_default_context())
                    if s.smtp_user:
                        server.login(s.smtp_user, s.smtp_password)
                    server.send_message(message)
            else:
                with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, context=ssl.create_default_context(), timeout=10) as server:
                    if s.smtp_user:
                        server.login(s.smtp_user, s.smtp_password)
                    server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            raise UpstreamError("Could not deliver email.") from exc
        logger.info("Email sent to %s", to_email)
        return True
