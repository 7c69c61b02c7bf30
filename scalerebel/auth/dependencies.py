"""Authentication dependencies for protected admin routes."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from scalerebel.auth.database import get_db, AdminSession
from scalerebel.auth.otp import authenticate_token

# Use auto_error=False so a missing header reaches our own 401 with the JSON error body
security = HTTPBearer(auto_error=False)


def require_admin_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> AdminSession:
    """Get the current admin session from the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = authenticate_token(db, credentials.credentials)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return session
