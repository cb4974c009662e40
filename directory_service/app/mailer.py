from __future__ import annotations

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from fastapi import Depends

from .config import AppConfig, MailConfig, get_config


logger = logging.getLogger(__name__)


class MailerInterface(Protocol):
    def send_html(
        self, to: str, subject: str, html: str
    ) -> None:  # pragma: no cover - Protocol
        ...


class SmtpMailer(MailerInterface):
    """SMTP(SSL) 로 HTML 메일을 보내는 기본 구현."""

    def __init__(self, config: MailConfig) -> None:
        self._config = config

    def send_html(self, to: str, subject: str, html: str) -> None:
        if not self._config.user or not self._config.password:
            raise RuntimeError("EMAIL_USER and EMAIL_PASS must be set to send mail")

        message = EmailMessage()
        message["From"] = self._config.user
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")

        with smtplib.SMTP_SSL(
            self._config.smtp_host, self._config.smtp_port, timeout=30
        ) as smtp:
            smtp.login(self._config.user, self._config.password)
            smtp.send_message(message)

        logger.info("sent mail to=%s subject=%s", to, subject)


def render_reset_password_email(username: str, reset_url: str) -> str:
    username = html.escape(username)
    reset_url = html.escape(reset_url, quote=True)
    return f"""
<div style="max-width: 600px; margin: 0 auto; padding: 20px; font-family: Arial, sans-serif;">
  <h2 style="color: #333; text-align: center;">Password Reset Request</h2>
  <p>Hi {username},</p>
  <p>You requested a password reset for your ZK Bug Directory account.</p>
  <p>Click the button below to reset your password:</p>
  <div style="text-align: center; margin: 30px 0;">
    <a href="{reset_url}"
       style="background-color: #4F46E5; color: white; padding: 12px 24px;
              text-decoration: none; border-radius: 5px; display: inline-block;">
      Reset Password
    </a>
  </div>
  <p>Or copy and paste this URL into your browser:</p>
  <p style="word-break: break-all; color: #666;">{reset_url}</p>
  <p><strong>This link will expire in 1 hour.</strong></p>
  <p>If you didn't request this, please ignore this email.</p>
  <hr style="margin: 30px 0; border: none; border-top: 1px solid #eee;">
  <p style="color: #666; font-size: 12px;">ZK Bug Directory Team</p>
</div>
"""


def get_mailer(config: AppConfig = Depends(get_config)) -> MailerInterface:
    """FastAPI DI용 Mailer 팩토리."""

    return SmtpMailer(config.mail)
