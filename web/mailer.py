"""SMTP delivery for contact-form submissions."""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Any, Dict, Optional

from .config import get_smtp_settings

__all__ = ["MailError", "build_message", "send_mail"]

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 30


class MailError(Exception):
    """Raised when a message cannot be handed to the SMTP server."""


def build_message(subject: str, html: str, text: str, sender: str, recipient: str) -> EmailMessage:
    """Build a multipart/alternative message with plain-text and HTML parts."""
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = sender
    message["To"] = recipient
    message.set_content(text)
    message.add_alternative(html, subtype="html")
    return message


def _check_settings(settings: Dict[str, Any]) -> None:
    if not settings.get("host"):
        raise MailError("SMTP_HOST is not configured")
    if not settings.get("recipient"):
        raise MailError("EMAIL_TO is not configured")
    if not settings.get("sender"):
        raise MailError("SMTP_FROM or SMTP_USER is not configured")


def send_mail(subject: str, html: str, text: str, settings: Optional[Dict[str, Any]] = None) -> None:
    """Send one message to the configured recipient.

    Args:
        subject: Subject line
        html: HTML body
        text: Plain-text body
        settings: SMTP settings; read from the environment when omitted

    Raises:
        MailError: settings missing or malformed (bad port, header injection,
            non-ASCII credentials) or any SMTP/network failure
    """
    try:
        settings = settings or get_smtp_settings()
        _check_settings(settings)
        message = build_message(subject, html, text, settings["sender"], settings["recipient"])
        context = ssl.create_default_context()

        if settings.get("secure"):
            server = smtplib.SMTP_SSL(settings["host"], settings["port"], timeout=SMTP_TIMEOUT, context=context)
        else:
            server = smtplib.SMTP(settings["host"], settings["port"], timeout=SMTP_TIMEOUT)
        with server:
            if not settings.get("secure"):
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
            if settings.get("user") and settings.get("password"):
                server.login(settings["user"], settings["password"])
            server.send_message(message)
    except (smtplib.SMTPException, OSError, ValueError) as e:
        raise MailError(str(e)) from e

    logger.info(f"Mail sent to {settings['recipient']}: {subject}")
