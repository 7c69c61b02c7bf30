"""Admin login routes: request a code, verify it, log out."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from scalerebel.auth.database import get_db, ensure_tables
from scalerebel.auth.dependencies import security
from scalerebel.auth.email_utils import send_otp_email
from scalerebel.auth.otp import (
    SESSION_TTL,
    InvalidOtpError,
    OtpRateLimitError,
    RATE_LIMIT_MAX_CODES,
    get_admin_email,
    logout,
    request_code,
    verify_code,
)
from scalerebel.auth.schemas import (
    OtpSendRequest,
    OtpSendResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    LogoutResponse,
)

router = APIRouter(prefix="/api/admin/otp", tags=["admin-auth"])


@router.post("/send", response_model=OtpSendResponse)
def send_code(
    payload: OtpSendRequest,
    db: Session = Depends(get_db)
):
    """
    Email a login code to the admin.

    Responds {sent: true} for any email so the admin address cannot be
    discovered by guessing.
    """
    ensure_tables()

    try:
        code = request_code(db, payload.email)
    except OtpRateLimitError:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many code requests. Please wait before trying again. (Max {RATE_LIMIT_MAX_CODES} codes per 15 minutes)"
        )
    except Exception as e:
        logging.error(f"Login code issuance error: {str(e)}", exc_info=True)
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send code. Please try again later."
        )

    # A failed send must look the same as a non-admin request
    if code is not None and not send_otp_email(get_admin_email(), code):
        logging.error("Login code email was not accepted by the email API")

    return OtpSendResponse(sent=True)


@router.post("/verify", response_model=OtpVerifyResponse)
def verify(
    payload: OtpVerifyRequest,
    db: Session = Depends(get_db)
):
    """Exchange a login code for a session token."""
    ensure_tables()

    try:
        session = verify_code(db, payload.email, payload.code)
    except InvalidOtpError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid code"
        )
    except Exception as e:
        logging.error(f"Login code verification error: {str(e)}", exc_info=True)
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Verification failed. Please try again later."
        )

    return OtpVerifyResponse(
        token=session.token,
        expiresIn=int(SESSION_TTL.total_seconds())
    )


@router.post("/logout", response_model=LogoutResponse)
def logout_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    """End the current admin session. Always succeeds."""
    if credentials:
        try:
            logout(db, credentials.credentials)
        except Exception as e:
            logging.warning(f"Failed to delete admin session on logout: {str(e)}")
            db.rollback()

    return LogoutResponse(success=True)
