"""Full journey: first login, onboarding, six stages, review, next login."""

import pytest
from httpx import AsyncClient


async def _login(client: AsyncClient, outbox, email: str) -> dict:
    await client.post("/auth/login", json={"email": email})
    response = await client.post(
        "/auth/verify-otp", json={"email": email, "otp": outbox.last_otp_for(email)}
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_new_donor_is_onboarded_reviewed_and_activated(
    client: AsyncClient, outbox, admin_user, auth_headers
):
    session = await _login(client, outbox, "new@test.com")
    assert session["redirect_route"] == "/onboarding"
    headers = {"Authorization": f"Bearer {session['token']}"}

    response = await client.put(
        "/profile/onboarding",
        json={
            "gender": "WOMAN",
            "role": "DONOR",
            "service_type": "DONOR_SERVICES",
            "interested_in": "EGG",
            "terms_accepted": True,
        },
        headers=headers,
    )
    assert response.status_code == 200

    stages = [
        ("/profile/stage-1/basics", {"legal_name": "Nora Evans", "dob": "1996-02-10"}),
        ("/profile/stage-2/background", {"height": 170, "weight": 62, "diet": "VEGAN"}),
        ("/profile/stage-3/health", {"has_diabetes": False, "cmv_status": "NEGATIVE"}),
        ("/profile/stage-4/genetic", {"carrier_conditions": []}),
        (
            "/profile/stage-5/compensation",
            {"allow_bidding": True, "min_accepted_price": 6000, "asking_price": 7500},
        ),
    ]
    for step, (path, body) in enumerate(stages, start=1):
        response = await client.post(path, json={**body, "is_complete": True}, headers=headers)
        assert response.status_code == 200, response.text
        current = await client.get("/profile/current", headers=headers)
        assert current.json()["user"]["onboarding_step"] == step

    response = await client.post(
        "/profile/stage-6/complete", json={"consent_agreed": True}, headers=headers
    )
    assert response.status_code == 200

    relogin = await _login(client, outbox, "new@test.com")
    assert relogin["redirect_route"] == "/profile/pending"

    user_id = relogin["user"]["id"]
    queue = await client.get("/admin/profile/pending", headers=auth_headers(admin_user))
    assert [u["id"] for u in queue.json()] == [user_id]

    decision = await client.patch(
        f"/admin/profile/approve/{user_id}",
        json={"status": "ACTIVE"},
        headers=auth_headers(admin_user),
    )
    assert decision.status_code == 200

    final = await _login(client, outbox, "new@test.com")
    assert final["redirect_route"] == "/home"
    assert final["user"]["profile_status"] == "ACTIVE"
    assert outbox.subjects_for("new@test.com") == [
        "Your Verification Code",
        "Welcome to the Helix Family!",
        "Your Verification Code",
        "Congratulations! Your Profile is Active",
        "Your Verification Code",
    ]
