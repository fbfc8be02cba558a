"""
Transactional email via Resend.
"""

import logging
from html import escape as html_escape
from typing import Any, Dict, Tuple

import resend

from config import Settings
from constants import EMAIL_VERIFICATION_EXPIRE_HOURS

logger = logging.getLogger(__name__)


class EmailSendError(RuntimeError):
    """Raised when Resend fails to deliver an email."""


def build_verification_url(settings: Settings, verification_id: str) -> str:
    return f"{settings.frontend_url}/verify-email?verificationID={verification_id}"


def _render_verification_email(settings: Settings, name: str, verification_url: str) -> Tuple[str, str]:
    project = settings.project_name
    hours = EMAIL_VERIFICATION_EXPIRE_HOURS
    validity = f"{hours} hour{'s' if hours != 1 else ''}"

    text_body = f"""
Hello {name}!

Welcome to {project}!

To complete your registration, please verify your email address by clicking the following link:

{verification_url}

This link will be valid for {validity}.

If you didn't create an account on our app, you can safely ignore this email.

Thank you!
{project} Team

---
This message was automatically generated, please do not reply to it.
""".strip()

    safe_name = html_escape(name)
    safe_project = html_escape(project)
    safe_url = html_escape(verification_url, quote=True)
    html_body = f"""
    <html>
      <body style="font-family: Arial, sans-serif; background: #f7fafc; padding: 24px; color: #2d3748;">
        <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 32px;">
          <h2 style="margin-top: 0;">Welcome to {safe_project}!</h2>
          <p style="line-height: 1.6;">Hello {safe_name}!</p>
          <p style="line-height: 1.6;">
            To complete your registration, please verify your email address.
          </p>
          <p style="text-align: center; margin: 30px 0;">
            <a href="{safe_url}" style="background: #667eea; color: #ffffff; text-decoration: none; padding: 16px 32px; border-radius: 12px; font-weight: 600;">
              Verify Email Address
            </a>
          </p>
          <p style="line-height: 1.6; font-size: 14px;">
            This verification link will be valid for {validity}.
          </p>
          <p style="line-height: 1.6; font-size: 13px; color: #718096;">
            If you didn't create an account on our app, you can safely ignore this email.
          </p>
        </div>
      </body>
    </html>
    """.strip()

    return text_body, html_body


def send_verification_email(settings: Settings, *, to_email: str, name: str, verification_id: str) -> None:
    """
    Send the email verification link via Resend.

    Args:
        settings: App settings with Resend credentials and sender
        to_email: Recipient email address
        name: Recipient first name for the greeting
        verification_id: Id embedded in the verification link

    Raises:
        EmailSendError if Resend rejects the message
    """
    resend.api_key = settings.resend_api_key

    verification_url = build_verification_url(settings, verification_id)
    text_body, html_body = _render_verification_email(settings, name, verification_url)

    payload: Dict[str, Any] = {
        "from": f"{settings.email_from_name} <{settings.email_from}>",
        "to": [to_email],
        "subject": f"Verify your email address - {settings.project_name}",
        "html": html_body,
        "text": text_body,
    }
    try:
        resend.Emails.send(payload)
    except Exception as exc:  # resend raises several runtime-specific error types
        raise EmailSendError("Unable to send verification email") from exc
    logger.info("Sent verification email to %s", to_email)


def dispatch_verification_email(settings: Settings, *, to_email: str, name: str, verification_id: str) -> None:
    """
    Background-task wrapper around send_verification_email.

    Registration has already succeeded when this runs, so delivery failures
    are only logged.
    """
    try:
        send_verification_email(settings, to_email=to_email, name=name, verification_id=verification_id)
    except EmailSendError:
        logger.exception("Verification email to %s could not be sent", to_email)
