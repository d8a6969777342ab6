"""
SMTP email delivery.

``smtplib`` is blocking, so each send runs in a worker thread.  Delivery
failures are logged and reported as ``False``; callers decide whether a
failed email matters (it never fails a booking).
"""

from __future__ import annotations

import asyncio
import logging
import re
import smtplib
from email.message import EmailMessage
from typing import Optional

from limoservice.config import Settings, settings

logger = logging.getLogger(__name__)


def html_to_text(html: str) -> str:
    text = re.sub(r"<(br|/p|/h\d|/tr)\s*/?>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"[ \t]+", " ", text)
    return re.sub(r"\n\s*\n+", "\n\n", text).strip()


class Mailer:
    def __init__(self, config: Settings = settings):
        self.config = config

    def _build(self, to: str, subject: str, html: str, sender: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(html_to_text(html))
        msg.add_alternative(html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        cfg = self.config
        if cfg.smtp_use_ssl:
            server = smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port, timeout=15)
        else:
            server = smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=15)
        with server:
            if not cfg.smtp_use_ssl:
                server.starttls()
            if cfg.smtp_user:
                server.login(cfg.smtp_user, cfg.smtp_password)
            server.send_message(msg)

    async def send(
        self, to: str, subject: str, html: str, sender: Optional[str] = None
    ) -> bool:
        sender = sender or self.config.email_from
        if not sender:
            logger.error("Email sender not configured; dropping %r to %s", subject, to)
            return False
        msg = self._build(to, subject, html, sender)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s (%s): %s", to, subject, exc)
            return False
        logger.info("Email sent to %s with subject: %s", to, subject)
        return True


def get_mailer() -> Mailer:
    return Mailer()
