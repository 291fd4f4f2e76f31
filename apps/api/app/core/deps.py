"""FastAPI dependencies for authentication, CSRF and database access."""

from typing import Generator

import jwt
from fastapi import Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import decode_session_token
from app.db.session import SessionLocal


# Cookie and header names
COOKIE_NAME = "practice_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_admin(request: Request) -> str:
    """
    Practitioner email from the session cookie.

    Raises:
        HTTPException 401: Missing or invalid session
        HTTPException 403: Email not in ADMIN_EMAILS
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid session")

    email = (payload.get("sub") or "").lower()
    if email not in settings.admin_emails_list:
        raise HTTPException(status_code=403, detail="Not authorized")
    return email


def require_csrf_header(request: Request) -> None:
    """
    Require X-Requested-With on state-changing requests.

    Browsers cannot set it cross-site without a CORS preflight.
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(status_code=403, detail="Missing CSRF header")


def verify_internal_secret(x_internal_secret: str = Header(...)) -> None:
    """Verify the internal secret header for cron endpoints."""
    if not settings.INTERNAL_SECRET:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != settings.INTERNAL_SECRET:
        raise HTTPException(status_code=403, detail="Invalid internal secret")
