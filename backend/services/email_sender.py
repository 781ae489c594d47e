"""
services/email_sender.py — Outbound email for password-reset codes.

``SmtpEmailSender`` is used when SMTP_HOST is configured; otherwise the
``LoggingEmailSender`` writes the message to the log so local development
works without a mail server.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from functools import partial

from config import Config
from logging_config import get_logger

logger = get_logger(__name__)


class EmailSender:
    async def send(self, to: str, subject: str, html: str) -> None:
        raise NotImplementedError


class LoggingEmailSender(EmailSender):
    async def send(self, to: str, subject: str, html: str) -> None:
        logger.info("email.not_sent.smtp_unconfigured", to=to, subject=subject, html=html)


class SmtpEmailSender(EmailSender):
    def __init__(self, host: str, port: int, user: str, password: str, sender: str):
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._sender = sender

    def _send_sync(self, to: str, subject: str, html: str) -> None:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(html, subtype="html")

        with smtplib.SMTP(self._host, self._port, timeout=30) as smtp:
            smtp.starttls()
            if self._user:
                smtp.login(self._user, self._password)
            smtp.send_message(msg)

    async def send(self, to: str, subject: str, html: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._send_sync, to, subject, html))
        logger.info("email.sent", to=to, subject=subject)


def build_email_sender(config=Config) -> EmailSender:
    if config.SMTP_HOST:
        return SmtpEmailSender(
            config.SMTP_HOST,
            config.SMTP_PORT,
            config.SMTP_USER,
            config.SMTP_PASSWORD,
            config.EMAIL_FROM,
        )
    return LoggingEmailSender()
