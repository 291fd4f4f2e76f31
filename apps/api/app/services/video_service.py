"""Video session tokens (Jitsi as a Service).

Issues RS256 JWTs for the host and the client of an ONLINE appointment.
Tokens are stored opaquely on the appointment.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import NamedTuple
from urllib.parse import urlencode
from uuid import UUID

import jwt

from app.core.config import settings
from app.utils.practice_time import to_local, utc_now

logger = logging.getLogger(__name__)

TOKEN_VALID_BEFORE_START = timedelta(hours=1)
TOKEN_VALID_AFTER_END = timedelta(days=1)


class VideoTokens(NamedTuple):
    host_jwt: str
    client_jwt: str


def _private_key() -> str:
    """PEM key from settings; env files often carry escaped newlines."""
    return settings.JITSI_PRIVATE_KEY.replace("\\n", "\n").strip()


def meeting_name(client_name: str, start: datetime) -> str:
    return f"{client_name} - {to_local(start):%d/%m/%Y %H:%M}"


def generate_token(
    appointment_id: UUID,
    user_name: str,
    user_email: str,
    is_host: bool,
    start: datetime,
    end: datetime,
    display_name: str,
) -> str:
    """Sign one participant token. Valid from 1h before start to 1 day after end."""
    now = utc_now()
    payload = {
        "iss": "chat",
        "aud": "jitsi",
        "sub": settings.JITSI_APP_ID,
        "room": "*",
        "iat": now,
        "nbf": start.astimezone(timezone.utc) - TOKEN_VALID_BEFORE_START,
        "exp": end.astimezone(timezone.utc) + TOKEN_VALID_AFTER_END,
        "context": {
            "user": {
                "id": user_email or f"user-{appointment_id}",
                "name": user_name,
                "email": user_email or "",
                "avatar": "",
                "moderator": is_host,
            },
            "features": {
                "recording": is_host,
                "livestreaming": is_host,
                "transcription": is_host,
                "outbound-call": is_host,
                "sip-outbound-call": False,
                "sip-inbound-call": False,
            },
            "room": {"regex": False, "name": display_name},
        },
    }
    return jwt.encode(
        payload,
        _private_key(),
        algorithm="RS256",
        headers={"kid": settings.JITSI_API_KEY_ID},
    )


def issue_appointment_tokens(
    appointment_id: UUID,
    client_name: str,
    client_email: str,
    start: datetime,
    end: datetime,
) -> VideoTokens | None:
    """
    Host and client tokens for an ONLINE appointment.

    Returns None when Jitsi is not configured so booking still succeeds.
    """
    if not settings.jitsi_configured:
        logger.warning("Jitsi not configured, appointment %s has no video tokens", appointment_id)
        return None

    display_name = meeting_name(client_name, start)
    host_jwt = generate_token(
        appointment_id,
        user_name=settings.PRACTITIONER_NAME,
        user_email=settings.PRACTITIONER_EMAIL,
        is_host=True,
        start=start,
        end=end,
        display_name=display_name,
    )
    client_jwt = generate_token(
        appointment_id,
        user_name=client_name,
        user_email=client_email,
        is_host=False,
        start=start,
        end=end,
        display_name=display_name,
    )
    return VideoTokens(host_jwt=host_jwt, client_jwt=client_jwt)


def meeting_url(appointment_id: UUID, user_type: str, token: str) -> str:
    """Frontend meeting page link carrying the participant token."""
    query = urlencode({"id": str(appointment_id), "userType": user_type, "jwt": token})
    return f"{settings.FRONTEND_URL.rstrip('/')}/meeting/{appointment_id}?{query}"
