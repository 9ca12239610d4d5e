"""Outbound email over SMTP (aiosmtplib)."""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any

import aiosmtplib

from adops.core.settings import settings

logger = logging.getLogger(__name__)


TEMPLATES: dict[str, tuple[str, str]] = {
    "welcome": (
        "Welcome to {account_name}",
        "Hi {name},\n\nYou have been added to {account_name}. Sign in at {login_url} with {email}.",
    ),
    "password_reset": (
        "Reset your password",
        "Hi {name},\n\nUse this link to reset your password: {reset_url}",
    ),
    "notification": (
        "{subject}",
        "{body}",
    ),
}


class _SafeDict(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render(template: str, data: dict[str, Any]) -> tuple[str, str, str]:
    try:
        subject_tpl, body_tpl = TEMPLATES[template]
    except KeyError as exc:
        raise ValueError(f"Unknown email template: {template}") from exc
    values = _SafeDict({key: "" if value is None else str(value) for key, value in data.items()})
    subject = subject_tpl.format_map(values)
    text = body_tpl.format_map(values)
    html = "<p>" + escape(text).replace("\n\n", "</p><p>").replace("\n", "<br>") + "</p>"
    return subject, text, html


async def send_email(to: str, subject: str, html: str, text: str | None = None) -> None:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    msg["To"] = to
    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        start_tls=settings.smtp_start_tls,
    )


async def send(to: str, template: str, data: dict[str, Any]) -> None:
    subject, text, html = render(template, data)
    await send_email(to, subject, html, text)
    logger.info("Email sent", extra={"template": template})
