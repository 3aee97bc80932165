from __future__ import annotations

import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from ..core.constants import OTP_TTL_MINUTES

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    """SMTP settings are missing."""


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    user: Optional[str]
    password: Optional[str]
    secure: bool
    from_name: str
    from_email: str

    @classmethod
    def from_settings(cls, settings) -> "SMTPConfig":
        user = getattr(settings, "SMTP_USER", None)
        return cls(
            host=str(getattr(settings, "SMTP_HOST", "smtp.gmail.com")),
            port=int(getattr(settings, "SMTP_PORT", 587)),
            user=user,
            password=getattr(settings, "SMTP_PASS", None),
            secure=bool(getattr(settings, "SMTP_SECURE", False)),
            from_name=str(getattr(settings, "SMTP_FROM_NAME", "Hostel Food Review")),
            from_email=str(getattr(settings, "SMTP_FROM_EMAIL", None) or user or "no-reply@hostel.local"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)


class Mailer:
    def __init__(self, config: SMTPConfig, *, portal_url: str = ""):
        self._config = config
        self._portal_url = portal_url

    def _send(self, *, to: str, subject: str, text: str, html_body: str) -> None:
        cfg = self._config
        if not cfg.configured:
            raise EmailNotConfiguredError("SMTP is not configured. Set SMTP_HOST, SMTP_USER and SMTP_PASS.")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f'"{cfg.from_name}" <{cfg.from_email}>'
        msg["To"] = to
        msg.set_content(text)
        msg.add_alternative(html_body, subtype="html")

        if cfg.secure:
            with smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=10) as server:
                server.login(cfg.user, cfg.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=10) as server:
                server.starttls()
                server.login(cfg.user, cfg.password)
                server.send_message(msg)
        logger.info("Sent '%s' email to %s", subject, to)

    def send_password_reset_otp(self, *, to: str, name: str, register_id: str, otp: str) -> None:
        rid = register_id.upper()
        text = (
            f"Dear {name},\n\n"
            f"We received a request to reset the password for your Hostel Food Review account ({rid}).\n"
            f"Your one-time verification code is: {otp}\n\n"
            f"This code is valid for {OTP_TTL_MINUTES} minutes. If you did not make this request, "
            "you may safely ignore this email.\n"
            "Never share this code with anyone."
        )
        digits = "".join(
            f'<td style="padding:0 4px;font-size:28px;font-weight:900;font-family:monospace">{d}</td>' for d in otp
        )
        html_body = (
            "<html><body>"
            "<h2>Password Reset</h2>"
            f"<p>Dear <strong>{html.escape(name)}</strong>,</p>"
            "<p>We received a request to reset the password for your Hostel Food Review account "
            f"(<strong>{html.escape(rid)}</strong>). Enter the one-time verification code below.</p>"
            f"<table><tr>{digits}</tr></table>"
            f"<p>This code is valid for <strong>{OTP_TTL_MINUTES} minutes</strong>.</p>"
            "<p>If you did not make this request, you may safely ignore this email.</p>"
            "</body></html>"
        )
        self._send(to=to, subject="Password Reset - Hostel Food Review", text=text, html_body=html_body)

    def send_welcome(
        self,
        *,
        to: str,
        name: str,
        register_id: str,
        hostel_block: Optional[str],
        department: Optional[str],
        year: Optional[str],
    ) -> None:
        first_name = (name.split(" ")[0] or name) if name else "there"
        rows = [
            ("Register ID", register_id.upper()),
            ("Hostel", hostel_block or "-"),
            ("Department", department or "-"),
            ("Year", year or "-"),
        ]
        text = f"Welcome, {first_name}!\n\nYour Hostel Food Review account is ready.\n\n" + "\n".join(
            f"{label}: {value}" for label, value in rows
        )
        if self._portal_url:
            text += f"\n\nSign in at {self._portal_url}"
        table = "".join(
            f"<tr><td><strong>{html.escape(label)}</strong></td><td>{html.escape(value)}</td></tr>"
            for label, value in rows
        )
        link = f'<p><a href="{html.escape(self._portal_url)}">Open the portal</a></p>' if self._portal_url else ""
        html_body = (
            "<html><body>"
            f"<h2>Welcome, {html.escape(first_name)}!</h2>"
            "<p>Rate your meals, scan the QR code for check-in, and file complaints.</p>"
            f"<table>{table}</table>{link}"
            "</body></html>"
        )
        self._send(to=to, subject="Welcome to Hostel Food Review", text=text, html_body=html_body)
