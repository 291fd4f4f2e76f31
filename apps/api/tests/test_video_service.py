"""Tests for video session tokens and meeting links."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app.core.config import settings
from app.services import video_service


@pytest.fixture(scope="module")
def rsa_keys() -> tuple[str, str]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def jitsi(monkeypatch, rsa_keys):
    private_pem, public_pem = rsa_keys
    # Env files usually carry the PEM on one line
    monkeypatch.setattr(settings, "JITSI_PRIVATE_KEY", private_pem.replace("\n", "\\n"))
    monkeypatch.setattr(settings, "JITSI_APP_ID", "vpaas-magic-cookie-test")
    monkeypatch.setattr(settings, "JITSI_API_KEY_ID", "vpaas-magic-cookie-test/abc123")
    monkeypatch.setattr(settings, "PRACTITIONER_NAME", "Dr Durand")
    monkeypatch.setattr(settings, "PRACTITIONER_EMAIL", "doctor@example.com")
    return public_pem


def _decode(token: str, public_pem: str) -> dict:
    return jwt.decode(token, public_pem, algorithms=["RS256"], audience="jitsi")


class TestIssueAppointmentTokens:

    def test_not_configured_returns_none(self, monkeypatch):
        monkeypatch.setattr(settings, "JITSI_APP_ID", "")
        now = datetime.now(timezone.utc)

        assert video_service.issue_appointment_tokens(
            uuid4(), "Alice Martin", "alice@example.com", now, now + timedelta(hours=1)
        ) is None

    def test_host_and_client_tokens(self, jitsi):
        appointment_id = uuid4()
        start = datetime.now(timezone.utc) - timedelta(minutes=10)
        end = start + timedelta(hours=1)

        tokens = video_service.issue_appointment_tokens(
            appointment_id, "Alice Martin", "alice@example.com", start, end
        )

        host = _decode(tokens.host_jwt, jitsi)
        guest = _decode(tokens.client_jwt, jitsi)
        assert host["sub"] == "vpaas-magic-cookie-test"
        assert host["context"]["user"]["moderator"] is True
        assert host["context"]["user"]["name"] == "Dr Durand"
        assert guest["context"]["user"]["moderator"] is False
        assert guest["context"]["user"]["email"] == "alice@example.com"
        assert guest["context"]["features"]["recording"] is False
        assert guest["nbf"] == int((start - timedelta(hours=1)).timestamp())
        assert guest["exp"] == int((end + timedelta(days=1)).timestamp())
        assert jwt.get_unverified_header(tokens.host_jwt)["kid"] == "vpaas-magic-cookie-test/abc123"

    def test_room_display_name(self, jitsi):
        start = datetime.now(timezone.utc).replace(microsecond=0)

        tokens = video_service.issue_appointment_tokens(
            uuid4(), "Alice Martin", "alice@example.com", start, start + timedelta(hours=1)
        )

        room = _decode(tokens.client_jwt, jitsi)["context"]["room"]
        assert room["name"] == f"Alice Martin - {start:%d/%m/%Y %H:%M}"


class TestMeetingUrl:

    def test_meeting_url(self, monkeypatch):
        monkeypatch.setattr(settings, "FRONTEND_URL", "https://practice.example.com/")
        appointment_id = uuid4()

        url = video_service.meeting_url(appointment_id, "client", "abc.def")

        assert url == (
            f"https://practice.example.com/meeting/{appointment_id}"
            f"?id={appointment_id}&userType=client&jwt=abc.def"
        )
