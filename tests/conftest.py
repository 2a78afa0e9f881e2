"""
Test configuration and fixtures.

Provides:
- In-memory SQLite session per test (schema created from the ORM metadata)
- Seeded RBAC and user factories
- Session token minting for authenticated requests
- HTTPX AsyncClient bound to the app with get_db overridden
- Captured outgoing email (no provider calls)
"""
import os
import re
import tempfile
import uuid
from dataclasses import dataclass, field
from typing import AsyncGenerator, Generator

# Configure before the app (and its settings singleton) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PLATFORM_RESEND_API_KEY"] = ""
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="helix-test-uploads-")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from helix.core.deps import get_db
from helix.core.permissions import MODERATOR_ROLE, SUPER_ADMIN_ROLE
from helix.core.security import create_session_token
from helix.db.base import Base
from helix.db import models  # noqa: F401  (registers tables on the metadata)
from helix.db.enums import Gender, GameteType, PlatformRole, ServiceType
from helix.db.models import User
from helix.main import app
from helix.services import notification_service, permission_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh in-memory database per test.

    StaticPool keeps a single connection so the schema survives across the
    threadpool that runs sync endpoints.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def seeded(db: Session) -> Session:
    """Database with the permission registry and system roles in place."""
    permission_service.seed_rbac(db)
    return db


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def make_user(db: Session):
    """
    Factory for users.

    ``onboarded=True`` fills in the pre-wizard answers so the user can go
    straight into the stages. ``role_name`` assigns an access role (RBAC must
    be seeded first).
    """
    def _make(
        email: str | None = None,
        *,
        role_name: str | None = None,
        onboarded: bool = False,
        platform_role: str = PlatformRole.DONOR.value,
        service_type: str = ServiceType.DONOR_SERVICES.value,
    ) -> User:
        user = User(email=email or f"user-{uuid.uuid4().hex[:8]}@test.com")
        if onboarded:
            user.gender = Gender.WOMAN.value
            user.role = platform_role
            user.service_type = service_type
            user.interested_in = GameteType.EGG.value
            user.terms_accepted = True
        db.add(user)
        db.commit()
        if role_name:
            permission_service.assign_role(db, user.id, role_name)
        db.refresh(user)
        return user

    return _make


@pytest.fixture(scope="function")
def admin_user(seeded: Session, make_user) -> User:
    return make_user("admin@test.com", role_name=SUPER_ADMIN_ROLE)


@pytest.fixture(scope="function")
def moderator_user(seeded: Session, make_user) -> User:
    return make_user("moderator@test.com", role_name=MODERATOR_ROLE)


# =============================================================================
# Auth Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def auth_headers():
    """Bearer header carrying a freshly minted session token for a user."""
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_session_token(user.id)}"}

    return _headers


# =============================================================================
# Email Capture
# =============================================================================

OTP_IN_BODY = re.compile(r"<h2>(\d{6})</h2>")


@dataclass
class SentEmail:
    to: str
    subject: str
    body_html: str


@dataclass
class Outbox:
    messages: list[SentEmail] = field(default_factory=list)
    fail: bool = False

    def last_otp_for(self, address: str) -> str:
        for message in reversed(self.messages):
            if message.to == address:
                match = OTP_IN_BODY.search(message.body_html)
                if match:
                    return match.group(1)
        raise AssertionError(f"No OTP email sent to {address}")

    def subjects_for(self, address: str) -> list[str]:
        return [m.subject for m in self.messages if m.to == address]


@pytest.fixture(scope="function")
def outbox(monkeypatch) -> Outbox:
    """Replace provider delivery with an in-memory outbox."""
    box = Outbox()

    async def fake_deliver(to, subject, body_html, *, from_name="Helix", transport=None):
        if box.fail:
            raise RuntimeError("provider unavailable")
        box.messages.append(SentEmail(to=to, subject=subject, body_html=body_html))
        return True

    monkeypatch.setattr(notification_service, "deliver", fake_deliver)
    return box


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session, outbox: Outbox) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient for the app, sharing the test's database session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
