"""Email utilities: transactional sends through the Resend API."""

import os
import html
import logging
from typing import Optional

import requests

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_FROM_EMAIL = "Scale Rebel Studio <noreply@thescalerebel.com>"
EMAIL_API_TIMEOUT_SECONDS = 10


def email_missing_fields(require_contact: bool = False) -> list:
    """Return the names of required email settings that are not configured."""
    missing = []
    if not os.environ.get("RESEND_API_KEY"):
        missing.append("RESEND_API_KEY")
    if require_contact and not os.environ.get("CONTACT_EMAIL"):
        missing.append("CONTACT_EMAIL")
    return missing


def send_email(
    to: str,
    subject: str,
    text: str,
    html_body: Optional[str] = None,
    reply_to: Optional[str] = None
) -> bool:
    """
    Send a single email through Resend.

    Args:
        to: Recipient address
        subject: Subject line
        text: Plain text body
        html_body: Optional HTML body (callers must escape user input)
        reply_to: Optional Reply-To address

    Returns:
        True if Resend accepted the message, False otherwise
    """
    api_key = os.environ.get("RESEND_API_KEY")
    if not api_key:
        logging.error("RESEND_API_KEY not configured")
        return False

    payload = {
        "from": os.environ.get("FROM_EMAIL", DEFAULT_FROM_EMAIL),
        "to": to,
        "subject": subject,
        "text": text,
    }
    if html_body:
        payload["html"] = html_body
    if reply_to:
        payload["reply_to"] = reply_to

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    try:
        resp = requests.post(RESEND_API_URL, json=payload, headers=headers, timeout=EMAIL_API_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logging.error(f"Email API request failed: {str(e)}", exc_info=True)
        return False

    if resp.status_code // 100 != 2:
        logging.error(f"Email API error: status={resp.status_code} body={resp.text[:300]}")
        return False

    logging.info(f"Email sent successfully: {subject}")
    return True


def send_otp_email(user_email: str, code: str) -> bool:
    """
    Send an admin login code.

    Args:
        user_email: Admin email address
        code: The numeric login code

    Returns:
        True if email sent successfully, False otherwise
    """
    text_body = f"""
Your admin login code is: {code}

This code expires in 10 minutes and can only be used once.

If you didn't request this code, you can safely ignore this email.
"""

    html_body = f"""
<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; color: #111; max-width: 480px; margin: 0 auto; padding: 20px;">
    <p style="font-size: 16px;">Your admin login code is:</p>
    <p style="font-size: 32px; font-weight: 700; letter-spacing: 6px; margin: 20px 0;">{html.escape(code)}</p>
    <p style="font-size: 14px; color: #6b7280;">This code expires in 10 minutes and can only be used once.</p>
    <p style="font-size: 12px; color: #9ca3af;">If you didn't request this code, you can safely ignore this email.</p>
</body>
</html>
"""

    return send_email(
        to=user_email,
        subject="Your admin login code",
        text=text_body,
        html_body=html_body
    )
