# app/modules/invitations/emails.py

from datetime import datetime
from html import escape
from typing import Tuple
from urllib.parse import urlencode

from app.core.config import settings


def build_invite_link(token: str) -> str:
    base = settings.FRONTEND_BASE_URL.rstrip("/")
    path = "/" + settings.SET_PASSWORD_PATH.lstrip("/")
    return f"{base}{path}?{urlencode({'token': token})}"


def build_invite_email(
    full_name: str,
    role: str,
    invite_link: str,
    expires_at: datetime,
) -> Tuple[str, str, str]:
    """
    Returns (subject, html, plain_text).
    """
    expiry = expires_at.strftime("%Y-%m-%d at %H:%M UTC")
    subject = f"You're invited to {settings.APP_NAME}"

    html = f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>Account Invitation</title></head>
  <body style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>Hello {escape(full_name)},</h2>
    <p>You have been invited to join {escape(settings.APP_NAME)} as <strong>{escape(role)}</strong>.</p>
    <p>Click the button below to set your password and activate your account.</p>
    <p>
      <a href="{escape(invite_link, quote=True)}"
         style="display: inline-block; background: #3b82f6; color: #fff; padding: 14px 28px;
                text-decoration: none; border-radius: 8px; font-weight: 600;">
        Set your password
      </a>
    </p>
    <p style="color: #6b7280;">This link can be used once and expires on {escape(expiry)}.</p>
    <p style="color: #6b7280; font-size: 13px;">
      If the button does not work, copy this address into your browser:<br>
      {escape(invite_link)}
    </p>
  </body>
</html>
"""

    text = (
        f"Hello {full_name},\n\n"
        f"You have been invited to join {settings.APP_NAME} as {role}.\n"
        f"Set your password here: {invite_link}\n\n"
        f"This link can be used once and expires on {expiry}.\n"
    )
    return subject, html, text
