"""Outbound mail rendered from jinja2 templates."""
from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Any, Protocol

import structlog
from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from .config import Settings

logger = structlog.get_logger(__name__)

templates = Environment(
    loader=PackageLoader("followups", "templates"),
    autoescape=select_autoescape(["html", "j2"]),
    undefined=StrictUndefined,
)


class Mailer(Protocol):
    async def send(self, recipient: str, template_name: str, data: dict[str, Any]) -> None:
        ...


def render(template_name: str, data: dict[str, Any]) -> tuple[str, str, str]:
    """Return ``(subject, plain_body, html_body)`` from the template's blocks."""

    template = templates.get_template(template_name)
    context = template.new_context(data)
    parts = []
    for block in ("subject", "plain_body", "html_body"):
        parts.append("".join(template.blocks[block](context)).strip())
    return parts[0], parts[1], parts[2]


class SMTPMailer:
    """Delivers mail over SMTP from a worker thread, retrying on failure."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        retries: int = 3,
        retry_delay: float = 0.5,
        timeout: float = 5.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.retries = max(retries, 1)
        self.retry_delay = retry_delay
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=settings.smtp_sender,
            retries=settings.smtp_retries,
        )

    def build_message(self, recipient: str, template_name: str, data: dict[str, Any]) -> EmailMessage:
        subject, plain_body, html_body = render(template_name, data)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = recipient
        message.set_content(plain_body)
        message.add_alternative(html_body, subtype="html")
        return message

    async def send(self, recipient: str, template_name: str, data: dict[str, Any]) -> None:
        message = self.build_message(recipient, template_name, data)

        for attempt in range(1, self.retries + 1):
            try:
                await asyncio.to_thread(self._deliver, message)
                logger.info("mail_sent", email=recipient, template=template_name)
                return
            except (smtplib.SMTPException, OSError) as exc:
                logger.warning(
                    "mail_attempt_failed",
                    email=recipient,
                    template=template_name,
                    attempt=attempt,
                    error=str(exc),
                )
                if attempt == self.retries:
                    raise
                await asyncio.sleep(self.retry_delay)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.username:
                smtp.starttls()
                smtp.login(self.username, self.password)
            smtp.send_message(message)
