"""Tests for the admin review queue and decisions."""

import uuid

import pytest
from httpx import AsyncClient

from helix.services import profile_service


@pytest.fixture
def pending_user(db, make_user):
    user = make_user("pending@test.com", onboarded=True)
    profile_service.upsert_stage(db, user, 1, {"legal_name": "Pat Smith"}, is_complete=True)
    profile_service.upsert_stage(db, user, 6, {"consent_agreed": True})
    db.refresh(user)
    return user


@pytest.mark.asyncio
async def test_pending_queue_requires_permission(
    client: AsyncClient, seeded, make_user, auth_headers
):
    user = make_user(role_name="User")

    response = await client.get("/admin/profile/pending", headers=auth_headers(user))

    assert response.status_code == 403
    body = response.json()
    assert body["kind"] == "authorization_error"
    assert body["required_permission"] == "profiles.view_pending"


@pytest.mark.asyncio
async def test_pending_queue_lists_full_profiles(
    client: AsyncClient, moderator_user, pending_user, auth_headers
):
    response = await client.get("/admin/profile/pending", headers=auth_headers(moderator_user))

    assert response.status_code == 200
    data = response.json()
    assert [u["email"] for u in data] == ["pending@test.com"]
    assert data[0]["profile"]["legal_name"] == "Pat Smith"
    assert data[0]["legal"]["consent_agreed"] is True


@pytest.mark.asyncio
async def test_approve(client: AsyncClient, admin_user, pending_user, auth_headers, outbox):
    response = await client.patch(
        f"/admin/profile/approve/{pending_user.id}",
        json={"status": "ACTIVE"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["profile_status"] == "ACTIVE"
    assert data["reviewed_at"] is not None
    assert outbox.subjects_for("pending@test.com") == ["Congratulations! Your Profile is Active"]

    queue = await client.get("/admin/profile/pending", headers=auth_headers(admin_user))
    assert queue.json() == []


@pytest.mark.asyncio
async def test_reject_with_reason(client: AsyncClient, admin_user, pending_user, auth_headers, outbox):
    response = await client.patch(
        f"/admin/profile/approve/{pending_user.id}",
        json={"status": "REJECTED", "reason": "Photo is blurry"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    assert response.json()["rejection_reason"] == "Photo is blurry"
    assert "Photo is blurry" in outbox.messages[-1].body_html


@pytest.mark.asyncio
async def test_reject_without_reason_conflicts(
    client: AsyncClient, admin_user, pending_user, auth_headers
):
    response = await client.patch(
        f"/admin/profile/approve/{pending_user.id}",
        json={"status": "REJECTED"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


@pytest.mark.asyncio
async def test_invalid_target_conflicts(client: AsyncClient, admin_user, pending_user, auth_headers):
    response = await client.patch(
        f"/admin/profile/approve/{pending_user.id}",
        json={"status": "DRAFT"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_approve_unknown_user(client: AsyncClient, admin_user, auth_headers):
    response = await client.patch(
        f"/admin/profile/approve/{uuid.uuid4()}",
        json={"status": "ACTIVE"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_approve_requires_permission(
    client: AsyncClient, seeded, make_user, pending_user, auth_headers
):
    reviewer = make_user(role_name="User")

    response = await client.patch(
        f"/admin/profile/approve/{pending_user.id}",
        json={"status": "ACTIVE"},
        headers=auth_headers(reviewer),
    )

    assert response.status_code == 403
    assert response.json()["required_permission"] == "profiles.approve"
