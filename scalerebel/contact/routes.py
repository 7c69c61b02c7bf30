"""Contact routes: public contact form mailer."""

import os
import html
import logging
from typing import List, Tuple

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.orm import Session

from scalerebel.auth.database import get_db, ensure_tables
from scalerebel.auth.email_utils import send_email, email_missing_fields
from scalerebel.contact.schemas import ContactRequest, ContactResponse
from scalerebel.contact.input_validation import (
    MAX_MESSAGE_LENGTH,
    MAX_NAME_LENGTH,
    clean_field,
    looks_like_spam,
    validate_email,
    validate_required,
)
from scalerebel.crm.database import Inquiry

router = APIRouter(prefix="/api", tags=["contact"])


def build_inquiry_fields(contact_data: ContactRequest, name: str, email: str, message: str) -> List[Tuple[str, str]]:
    """Label/value pairs for the notification email, blank fields dropped."""
    fields = [
        ("Name", name),
        ("Email", email),
        ("Phone", clean_field(contact_data.phone)),
        ("Company", clean_field(contact_data.company)),
        ("Budget", clean_field(contact_data.budget)),
        ("Message", message),
    ]
    return [(label, value) for label, value in fields if value]


def render_inquiry_email(fields: List[Tuple[str, str]]) -> Tuple[str, str]:
    """Render the notification as (text, html). Every value is escaped in the HTML part."""
    text_body = "\n".join(f"{label}: {value}" for label, value in fields)

    rows = "\n".join(
        f'<tr><td style="padding: 6px 12px; font-weight: 600; vertical-align: top;">{html.escape(label)}</td>'
        f'<td style="padding: 6px 12px; white-space: pre-wrap;">{html.escape(value)}</td></tr>'
        for label, value in fields
    )
    html_body = f"""
<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; color: #111;">
    <h2 style="margin: 0 0 16px;">New inquiry</h2>
    <table style="border-collapse: collapse;">
{rows}
    </table>
</body>
</html>
"""
    return text_body, html_body


def save_inquiry(db: Session, contact_data: ContactRequest, name: str, email: str, message: str) -> None:
    """Persist the submission. Failures are logged only; the email has already gone out."""
    try:
        inquiry = Inquiry(
            name=name[:MAX_NAME_LENGTH],
            email=email,
            phone=clean_field(contact_data.phone, max_length=50) or None,
            company=clean_field(contact_data.company) or None,
            budget=clean_field(contact_data.budget, max_length=100) or None,
            message=message,
        )
        db.add(inquiry)
        db.commit()
    except Exception as e:
        logging.error(f"Failed to store inquiry: {str(e)}")
        db.rollback()


def send_confirmation(name: str, email: str) -> None:
    """Acknowledge the submission to the sender, if enabled."""
    if os.environ.get("SEND_CONFIRMATION_EMAIL", "").lower() != "true":
        return
    try:
        sent = send_email(
            to=email,
            subject="Thanks for getting in touch",
            text=f"Hi {name},\n\nThanks for reaching out. We received your message and will get back to you soon.\n\nScale Rebel Studio\n",
            html_body=(
                f"<p>Hi {html.escape(name)},</p>"
                "<p>Thanks for reaching out. We received your message and will get back to you soon.</p>"
                "<p>Scale Rebel Studio</p>"
            )
        )
        if not sent:
            logging.warning("Confirmation email was not accepted by the email API")
    except Exception as e:
        logging.error(f"Failed to send confirmation email: {str(e)}")


@router.post("/send-email", response_model=ContactResponse, status_code=status.HTTP_200_OK)
def submit_contact_form(
    contact_data: ContactRequest,
    db: Session = Depends(get_db)
):
    """
    Email a contact form submission to the studio and record it as an inquiry.

    Bot traffic (honeypot filled in, spam content) gets the normal success
    response but nothing is sent or stored.
    """
    if clean_field(contact_data.website):
        logging.info("Contact form honeypot triggered; discarding submission")
        return ContactResponse(success=True)

    name = validate_required(contact_data.name, "Name is required.")[:MAX_NAME_LENGTH]
    email = validate_email(contact_data.email)
    message = validate_required(contact_data.message, "Message is required.")[:MAX_MESSAGE_LENGTH]

    if looks_like_spam(name, message, contact_data.company):
        logging.info(f"Contact form spam filtered from {email}")
        return ContactResponse(success=True)

    missing = email_missing_fields(require_contact=True)
    if missing:
        logging.error(f"Contact form email not configured; missing={','.join(missing)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server is missing required configuration."
        )

    fields = build_inquiry_fields(contact_data, name, email, message)
    text_body, html_body = render_inquiry_email(fields)

    email_sent = send_email(
        to=os.environ["CONTACT_EMAIL"],
        subject=f"New inquiry from {name}",
        text=text_body,
        html_body=html_body,
        reply_to=email
    )

    if not email_sent:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Email service error. Please try again."
        )

    # Table creation is a fallback in case startup init failed
    ensure_tables()
    save_inquiry(db, contact_data, name, email, message)
    send_confirmation(name, email)

    return ContactResponse(success=True)
