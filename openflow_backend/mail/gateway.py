"""Outbound mail gateway.

Gateways report delivery as a :class:`MailResult` instead of raising, so the
notification dispatcher can inspect every subscriber's outcome in its loop.
"""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol, runtime_checkable

from ..config import Settings
from ..core.logging import get_logger
from . import templates

logger = get_logger(__name__)


@dataclass(frozen=True)
class MailResult:
    ok: bool
    detail: str = ""
    simulated: bool = False

    @classmethod
    def sent(cls, detail: str = "") -> MailResult:
        return cls(ok=True, detail=detail)

    @classmethod
    def failed(cls, detail: str) -> MailResult:
        return cls(ok=False, detail=detail[:400])


@runtime_checkable
class MailGateway(Protocol):
    async def send_notification(
        self,
        to_email: str,
        notification_type: str,
        message: str,
        reference_type: str,
        reference_id: str,
    ) -> MailResult: ...


class LoggingMailGateway:
    """Disabled mail: every send is logged and reported as simulated."""

    def __init__(self, app_url: str = "https://app.openflow.world"):
        self._app_url = app_url

    async def send_notification(
        self,
        to_email: str,
        notification_type: str,
        message: str,
        reference_type: str,
        reference_id: str,
    ) -> MailResult:
        logger.info(
            "Email (simulated)",
            data={
                "to_email": to_email,
                "subject": templates.subject_for(notification_type),
                "body": templates.render_text(message, reference_type, reference_id, self._app_url),
            },
        )
        return MailResult(ok=True, detail="simulated", simulated=True)


class SMTPMailGateway:
    def __init__(
        self,
        host: str,
        port: int = 587,
        from_addr: str = "noreply@openflow.world",
        username: str = "",
        password: str = "",
        starttls: bool = True,
        timeout: float = 15.0,
        app_url: str = "https://app.openflow.world",
    ):
        self._host = host
        self._port = port
        self._from = from_addr
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = timeout
        self._app_url = app_url

    def build_message(
        self,
        to_email: str,
        notification_type: str,
        message: str,
        reference_type: str,
        reference_id: str,
    ) -> EmailMessage:
        m = EmailMessage()
        m["Subject"] = templates.subject_for(notification_type)
        m["From"] = self._from
        m["To"] = to_email
        m.set_content(templates.render_text(message, reference_type, reference_id, self._app_url))
        m.add_alternative(
            templates.render_html(message, reference_type, reference_id, self._app_url),
            subtype="html",
        )
        return m

    def _send_sync(self, m: EmailMessage) -> None:
        with smtplib.SMTP(host=self._host, port=self._port, timeout=self._timeout) as s:
            s.ehlo()
            if self._starttls:
                s.starttls()
                s.ehlo()
            if self._username and self._password:
                s.login(self._username, self._password)
            s.send_message(m)

    async def send_notification(
        self,
        to_email: str,
        notification_type: str,
        message: str,
        reference_type: str,
        reference_id: str,
    ) -> MailResult:
        m = self.build_message(to_email, notification_type, message, reference_type, reference_id)
        try:
            await asyncio.to_thread(self._send_sync, m)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "Failed to send email",
                data={"to_email": to_email, "error": f"{type(exc).__name__}: {exc}"},
            )
            return MailResult.failed(f"{type(exc).__name__}: {exc}")
        logger.info("Email sent", data={"to_email": to_email, "type": notification_type})
        return MailResult.sent()


def build_mail_gateway(settings: Settings) -> MailGateway:
    if settings.mail_enabled and settings.smtp_configured:
        logger.info("SMTP mail gateway enabled", data={"host": settings.smtp_host, "from": settings.mail_from})
        return SMTPMailGateway(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_addr=settings.mail_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            starttls=settings.smtp_starttls,
            timeout=settings.smtp_timeout_seconds,
            app_url=settings.app_base_url,
        )
    if settings.mail_enabled:
        logger.warning("Mail enabled but SMTP host is not configured; emails will be logged only")
    else:
        logger.info("Mail is disabled. Email notifications will be logged only.")
    return LoggingMailGateway(app_url=settings.app_base_url)
