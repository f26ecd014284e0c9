from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Any

from natours.core.config import settings


class EmailDeliveryError(Exception):
    pass


logger = logging.getLogger("natours.email")


def _first_name(name: str | None) -> str:
    parts = str(name or "").strip().split()
    return parts[0] if parts else "there"


def _mock_send(*, to: str, subject: str, body: str) -> dict[str, Any]:
    logger.warning("[EMAIL MOCK] to=%s subject=%s\n%s", to, subject, body)
    return {"provider": "mock_email", "status": "accepted", "sent": False, "mocked": True}


def _send_smtp(*, to: str, subject: str, body: str) -> dict[str, Any]:
    host = str(settings.SMTP_HOST or "").strip()
    port = int(settings.SMTP_PORT or 0)
    username = str(settings.SMTP_USER or "").strip()
    password = str(settings.SMTP_PASSWORD or "").strip()
    sender = str(settings.EMAIL_FROM or "").strip()
    use_tls = bool(settings.SMTP_USE_TLS)
    use_ssl = bool(settings.SMTP_USE_SSL)

    if not host or not port or not sender:
        raise EmailDeliveryError("SMTP_HOST/SMTP_PORT/EMAIL_FROM are not configured")
    if use_tls and use_ssl:
        raise EmailDeliveryError("SMTP_USE_TLS and SMTP_USE_SSL cannot both be enabled")

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        if use_ssl:
            smtp = smtplib.SMTP_SSL(host=host, port=port, timeout=15)
        else:
            smtp = smtplib.SMTP(host=host, port=port, timeout=15)
        with smtp:
            if use_tls and not use_ssl:
                smtp.starttls()
            if username:
                smtp.login(username, password)
            smtp.send_message(msg)
    except (OSError, smtplib.SMTPException) as exc:
        raise EmailDeliveryError(f"SMTP delivery failed: {exc}") from exc
    return {"provider": "smtp", "status": "sent", "sent": True, "mocked": False}


def send_email(*, to: str, subject: str, body: str) -> dict[str, Any]:
    provider = str(settings.EMAIL_PROVIDER or "dummy").strip().lower()
    if provider == "smtp":
        return _send_smtp(to=to, subject=subject, body=body)
    if provider == "dummy":
        return _mock_send(to=to, subject=subject, body=body)
    raise EmailDeliveryError(f"Unknown EMAIL_PROVIDER: {provider}")


def send_welcome(*, to: str, name: str | None, url: str) -> dict[str, Any]:
    body = (
        f"Hi {_first_name(name)},\n\n"
        "Welcome to Natours, we're glad to have you!\n"
        f"Upload your user photo and start exploring: {url}\n"
    )
    return send_email(to=to, subject="Welcome to the Natours Family!", body=body)


def send_password_reset(*, to: str, name: str | None, url: str) -> dict[str, Any]:
    minutes = int(settings.PASSWORD_RESET_TTL_MINUTES)
    body = (
        f"Hi {_first_name(name)},\n\n"
        f"Forgot your password? Submit a PATCH request with your new password and password_confirm to: {url}\n"
        f"The link is valid for {minutes} minutes. If you didn't forget your password, please ignore this email.\n"
    )
    return send_email(to=to, subject=f"Your password reset token (valid for {minutes} min)", body=body)
