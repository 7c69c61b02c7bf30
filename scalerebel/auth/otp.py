"""One-time-password login for the single admin account.

Codes are issued only to the configured ``ADMIN_EMAIL``, expire after ten
minutes and can be redeemed once. A redeemed code mints an opaque bearer
session that is valid for a fixed 24 hours from issuance.
"""

import logging
import os
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from scalerebel.auth.database import OtpCode, AdminSession, utcnow

CODE_LENGTH = 6
CODE_TTL = timedelta(minutes=10)
SESSION_TTL = timedelta(hours=24)
SESSION_TOKEN_LENGTH = 64
RATE_LIMIT_MAX_CODES = 5
RATE_LIMIT_WINDOW = timedelta(minutes=15)

_TOKEN_ALPHABET = string.ascii_letters + string.digits


class OtpError(Exception):
    """Base class for login code failures."""


class OtpRateLimitError(OtpError):
    """Too many codes issued to the same email inside the rate-limit window."""


class InvalidOtpError(OtpError):
    """Wrong email, wrong code, expired code or code already used."""


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_admin_email() -> Optional[str]:
    """Return the configured admin email (lowercased) or None if unset."""
    admin_email = normalize_email(os.environ.get("ADMIN_EMAIL"))
    return admin_email or None


def is_admin_email(email: Optional[str]) -> bool:
    admin_email = get_admin_email()
    return admin_email is not None and normalize_email(email) == admin_email


def generate_code() -> str:
    """Generate a zero-padded numeric login code."""
    return str(secrets.randbelow(10 ** CODE_LENGTH)).zfill(CODE_LENGTH)


def generate_session_token() -> str:
    """Generate an unguessable alphanumeric session token."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(SESSION_TOKEN_LENGTH))


def purge_expired_codes(db: Session, now: datetime) -> None:
    """
    Delete codes that are expired and older than the rate-limit window.

    Codes that expired recently still count towards the rate limit, so they
    are kept until they fall out of the window.
    """
    try:
        db.query(OtpCode).filter(
            OtpCode.expires_at <= now,
            OtpCode.created_at < now - RATE_LIMIT_WINDOW
        ).delete(synchronize_session=False)
        db.commit()
    except Exception as e:
        logging.warning(f"Failed to purge expired login codes: {str(e)}")
        db.rollback()


def purge_expired_sessions(db: Session, now: datetime) -> None:
    try:
        db.query(AdminSession).filter(
            AdminSession.expires_at <= now
        ).delete(synchronize_session=False)
        db.commit()
    except Exception as e:
        logging.warning(f"Failed to purge expired admin sessions: {str(e)}")
        db.rollback()


def request_code(db: Session, email: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
    """
    Issue a login code for ``email``.

    Returns the new code, or None when ``email`` is not the admin address.
    Callers must not reveal which of the two happened.

    Raises:
        OtpRateLimitError: if the email already received the maximum number
            of codes within the trailing rate-limit window
    """
    now = now or utcnow()
    email = normalize_email(email)

    if not is_admin_email(email):
        logging.info("Login code requested for a non-admin email; ignoring")
        return None

    recent_count = db.query(func.count(OtpCode.id)).filter(
        OtpCode.email == email,
        OtpCode.created_at > now - RATE_LIMIT_WINDOW
    ).scalar() or 0

    if recent_count >= RATE_LIMIT_MAX_CODES:
        logging.warning(f"Login code rate limit hit ({recent_count} codes in window)")
        raise OtpRateLimitError()

    purge_expired_codes(db, now)

    code = generate_code()
    db.add(OtpCode(
        email=email,
        code=code,
        expires_at=now + CODE_TTL,
        used=False,
        created_at=now
    ))
    db.commit()

    logging.info("Issued admin login code")
    return code


def verify_code(db: Session, email: Optional[str], code: Optional[str], now: Optional[datetime] = None) -> AdminSession:
    """
    Redeem a login code and mint an admin session.

    Raises:
        InvalidOtpError: for any mismatch, expiry or replay; the cause is
            deliberately not distinguished
    """
    now = now or utcnow()
    email = normalize_email(email)
    code = (code or "").strip()

    if not code or not is_admin_email(email):
        raise InvalidOtpError()

    record = db.query(OtpCode).filter(
        OtpCode.email == email,
        OtpCode.code == code,
        OtpCode.used.is_(False),
        OtpCode.expires_at > now
    ).order_by(OtpCode.created_at.desc()).first()

    if record is None:
        raise InvalidOtpError()

    purge_expired_sessions(db, now)

    # Conditional update so two concurrent redemptions cannot both succeed;
    # the session insert commits in the same transaction
    claimed = db.query(OtpCode).filter(
        OtpCode.id == record.id,
        OtpCode.used.is_(False)
    ).update({OtpCode.used: True}, synchronize_session=False)

    if claimed != 1:
        db.rollback()
        raise InvalidOtpError()

    session = AdminSession(
        token=generate_session_token(),
        email=email,
        expires_at=now + SESSION_TTL,
        created_at=now
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    logging.info("Admin session created")
    return session


def authenticate_token(db: Session, token: Optional[str], now: Optional[datetime] = None) -> Optional[AdminSession]:
    """Return the live session for ``token``, or None. Expiry is fixed at issuance."""
    if not token:
        return None
    now = now or utcnow()
    return db.query(AdminSession).filter(
        AdminSession.token == token,
        AdminSession.expires_at > now
    ).first()


def logout(db: Session, token: Optional[str]) -> None:
    """Delete the session for ``token`` if it exists. Unknown tokens are a no-op."""
    if not token:
        return
    db.query(AdminSession).filter(
        AdminSession.token == token
    ).delete(synchronize_session=False)
    db.commit()
