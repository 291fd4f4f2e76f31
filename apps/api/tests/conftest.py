"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test
- Session cookie minting for the practitioner API
- HTTPX AsyncClient with proper headers
- Client and weekly template fixtures
"""
import os
from datetime import time
from decimal import Decimal
from typing import AsyncGenerator, Generator

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["PRACTICE_TIMEZONE"] = "UTC"
os.environ["ADMIN_EMAILS"] = "doctor@example.com"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret-with-enough-entropy"
os.environ["RESEND_API_KEY"] = ""
os.environ["JITSI_APP_ID"] = ""
os.environ["SENTRY_DSN"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.deps import COOKIE_NAME, get_db
from app.core.security import create_session_token
from app.db.base import Base
from app.db.models import Client, WeeklyAvailabilityBlock
from app.services.resend_email_service import SendResult

ADMIN_EMAIL = "doctor@example.com"
INTERNAL_SECRET = "test-internal-secret"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on a brand-new in-memory database.

    App code commits freely; the whole database is dropped with the engine.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture(scope="function")
def weekday_template(db: Session) -> list[WeeklyAvailabilityBlock]:
    """Monday to Friday, 09:00-17:00."""
    blocks = [
        WeeklyAvailabilityBlock(weekday=day, start_time=time(9, 0), end_time=time(17, 0))
        for day in range(5)
    ]
    db.add_all(blocks)
    db.commit()
    return blocks


@pytest.fixture(scope="function")
def practice_client(db: Session) -> Client:
    """Confirmed client without automatic invoicing."""
    client = Client(
        first_name="Alice",
        last_name="Martin",
        email="alice@example.com",
        confirmed=True,
        default_rate=Decimal("80.00"),
    )
    db.add(client)
    db.commit()
    return client


@pytest.fixture(scope="function")
def invoiced_client(db: Session) -> Client:
    """Confirmed client who gets invoices by email."""
    client = Client(
        first_name="Bruno",
        last_name="Leroy",
        email="bruno@example.com",
        confirmed=True,
        send_invoice_automatically=True,
        default_rate=Decimal("90.00"),
    )
    db.add(client)
    db.commit()
    return client


# =============================================================================
# Email Fixtures
# =============================================================================

class FakeSender:
    """Records outgoing emails instead of calling Resend."""

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[dict] = []
        self.fail_for = fail_for or set()

    async def __call__(self, to_email, subject, html, idempotency_key, to_name=None) -> SendResult:
        if to_email in self.fail_for:
            return SendResult(success=False, error="Mailbox unavailable")
        self.sent.append({
            "to_email": to_email,
            "to_name": to_name,
            "subject": subject,
            "html": html,
            "idempotency_key": idempotency_key,
        })
        return SendResult(success=True, message_id=f"msg-{len(self.sent)}")


@pytest.fixture(scope="function")
def fake_sender() -> FakeSender:
    return FakeSender()


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated AsyncClient with session cookie and CSRF header.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={COOKIE_NAME: create_session_token(ADMIN_EMAIL)},
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    ) as c:
        yield c

    app.dependency_overrides.clear()
