"""Tests for emailed-code login, sessions and redirect hints."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient

from helix.core.config import settings
from helix.core.deps import COOKIE_NAME
from helix.db.enums import ProfileStatus
from helix.services import auth_service


async def _login(client: AsyncClient, outbox, email: str) -> dict:
    response = await client.post("/auth/login", json={"email": email})
    assert response.status_code == 200
    code = outbox.last_otp_for(email.strip().lower())
    response = await client.post("/auth/verify-otp", json={"email": email, "otp": code})
    assert response.status_code == 200
    return response.json()


# =============================================================================
# Login
# =============================================================================


@pytest.mark.asyncio
async def test_login_sends_code_without_returning_it(client: AsyncClient, outbox):
    response = await client.post("/auth/login", json={"email": "  New@Test.com "})

    assert response.status_code == 200
    data = response.json()
    assert data == {"message": "OTP sent to your email", "email": "ne...@test.com"}
    code = outbox.last_otp_for("new@test.com")
    assert code not in response.text


@pytest.mark.asyncio
async def test_login_rejects_malformed_email(client: AsyncClient):
    response = await client.post("/auth/login", json={"email": "not-an-email"})

    assert response.status_code == 422
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_login_succeeds_even_if_email_fails(client: AsyncClient, outbox):
    outbox.fail = True

    response = await client.post("/auth/login", json={"email": "mailfail@test.com"})

    assert response.status_code == 200


# =============================================================================
# Verification
# =============================================================================


@pytest.mark.asyncio
async def test_verify_new_user_goes_to_onboarding(client: AsyncClient, outbox):
    data = await _login(client, outbox, "fresh@test.com")

    assert data["token"]
    assert data["user"]["email"] == "fresh@test.com"
    assert data["user"]["onboarding_step"] == 0
    assert data["redirect_route"] == "/onboarding"
    assert data["is_admin"] is False
    assert client.cookies.get(COOKIE_NAME) == data["token"]


@pytest.mark.asyncio
async def test_verify_admin_goes_to_admin(client: AsyncClient, outbox, admin_user):
    data = await _login(client, outbox, admin_user.email)

    assert data["redirect_route"] == "/admin"
    assert data["is_admin"] is True


@pytest.mark.asyncio
async def test_verify_wrong_code(client: AsyncClient, outbox):
    await client.post("/auth/login", json={"email": "wrong@test.com"})
    code = outbox.last_otp_for("wrong@test.com")
    wrong = "000000" if code != "000000" else "111111"

    response = await client.post("/auth/verify-otp", json={"email": "wrong@test.com", "otp": wrong})

    assert response.status_code == 401
    body = response.json()
    assert body["kind"] == "authentication_error"
    assert body["reason"] == "mismatch"


@pytest.mark.asyncio
async def test_verify_unknown_email(client: AsyncClient):
    response = await client.post(
        "/auth/verify-otp", json={"email": "nobody@test.com", "otp": "123456"}
    )

    assert response.status_code == 401
    assert response.json()["reason"] == "not_found"


@pytest.mark.asyncio
async def test_verify_reused_code(client: AsyncClient, outbox):
    await client.post("/auth/login", json={"email": "reuse@test.com"})
    code = outbox.last_otp_for("reuse@test.com")
    first = await client.post("/auth/verify-otp", json={"email": "reuse@test.com", "otp": code})
    assert first.status_code == 200

    second = await client.post("/auth/verify-otp", json={"email": "reuse@test.com", "otp": code})

    assert second.status_code == 401
    assert second.json()["reason"] == "already_consumed"


@pytest.mark.asyncio
@pytest.mark.parametrize("otp", ["12345", "1234567", "12ab56"])
async def test_verify_rejects_malformed_code(client: AsyncClient, otp):
    response = await client.post("/auth/verify-otp", json={"email": "x@test.com", "otp": otp})

    assert response.status_code == 422


# =============================================================================
# Session
# =============================================================================


@pytest.mark.asyncio
async def test_me_requires_session(client: AsyncClient):
    response = await client.get("/auth/me")

    assert response.status_code == 401
    assert response.json() == {"kind": "authentication_error", "detail": "Not authenticated"}


@pytest.mark.asyncio
async def test_me_with_cookie_after_login(client: AsyncClient, outbox):
    await _login(client, outbox, "cookie@test.com")

    response = await client.get("/auth/me")

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "cookie@test.com"
    assert data["role_name"] is None
    assert data["permissions"] == []


@pytest.mark.asyncio
async def test_me_with_bearer_lists_permissions(client: AsyncClient, admin_user, auth_headers):
    response = await client.get("/auth/me", headers=auth_headers(admin_user))

    assert response.status_code == 200
    data = response.json()
    assert data["role_name"] == "Super Admin"
    assert "profiles.approve" in data["permissions"]
    assert data["permissions"] == sorted(data["permissions"])


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient):
    response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


@pytest.mark.asyncio
async def test_token_with_malformed_subject(client: AsyncClient):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "not-a-uuid", "iat": now, "exp": now + timedelta(hours=1)},
        settings.JWT_SECRET,
        algorithm="HS256",
    )

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


@pytest.mark.asyncio
async def test_expired_token(client: AsyncClient, make_user):
    user = make_user()
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {"sub": str(user.id), "iat": past, "exp": past + timedelta(hours=1)},
        settings.JWT_SECRET,
        algorithm="HS256",
    )

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Session expired"


@pytest.mark.asyncio
async def test_previous_secret_still_accepted(client: AsyncClient, make_user, monkeypatch):
    user = make_user()
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": str(user.id), "iat": now, "exp": now + timedelta(hours=1)},
        "old-secret",
        algorithm="HS256",
    )
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "old-secret")

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_token_for_deleted_user(client: AsyncClient, db, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    db.delete(user)
    db.commit()

    response = await client.get("/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == "User not found"


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient, outbox):
    await _login(client, outbox, "bye@test.com")

    response = await client.post("/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"status": "logged_out"}
    assert COOKIE_NAME not in client.cookies


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# =============================================================================
# Redirect hints
# =============================================================================


@pytest.mark.parametrize(
    ("status", "route"),
    [
        (ProfileStatus.DRAFT.value, "/profile/complete"),
        (ProfileStatus.PENDING_REVIEW.value, "/profile/pending"),
        (ProfileStatus.ACTIVE.value, "/home"),
        (ProfileStatus.REJECTED.value, "/profile/rejected"),
    ],
)
def test_redirect_follows_review_status(db, make_user, status, route):
    user = make_user(onboarded=True)
    user.profile_status = status
    db.commit()

    assert auth_service.resolve_redirect_route(db, user) == route


def test_redirect_requires_terms_and_role(db, make_user):
    user = make_user(onboarded=True)
    user.terms_accepted = False
    db.commit()

    assert auth_service.resolve_redirect_route(db, user) == "/onboarding"


def test_role_without_permissions_is_not_admin(seeded, make_user):
    user = make_user(onboarded=True, role_name="User")

    assert auth_service.is_admin(seeded, user) is False
    assert auth_service.resolve_redirect_route(seeded, user) == "/profile/complete"
