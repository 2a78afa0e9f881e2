"""Tests for the system settings store."""

import pytest
from httpx import AsyncClient

from helix.core.errors import ConflictError, NotFoundError
from helix.services import settings_service
from helix.services.settings_service import DbSettingsProvider


def test_seed_defaults_keeps_existing_values(db):
    settings_service.update_settings(db, {"BUSINESS_NAME": "Acme"})

    created = settings_service.seed_default_settings(db)

    assert created == len(settings_service.DEFAULT_SETTINGS) - 1
    assert settings_service.get_all_settings(db)["BUSINESS_NAME"] == "Acme"


def test_update_stringifies_values(db):
    result = settings_service.update_settings(db, {"MAX_PHOTOS": 4, "MAIL_FOOTER_TEXT": None})

    assert result["MAX_PHOTOS"] == "4"
    assert result["MAIL_FOOTER_TEXT"] == ""


def test_protected_keys_cannot_be_deleted(db):
    settings_service.seed_default_settings(db)

    with pytest.raises(ConflictError):
        settings_service.delete_setting(db, "BUSINESS_NAME")

    assert "BUSINESS_NAME" in settings_service.get_all_settings(db)


def test_delete_unknown_key(db):
    with pytest.raises(NotFoundError):
        settings_service.delete_setting(db, "NOPE")


def test_provider_reads_at_call_time(db):
    provider = DbSettingsProvider(db)
    assert provider.get("BUSINESS_NAME", "fallback") == "fallback"

    settings_service.update_settings(db, {"BUSINESS_NAME": "Acme"})

    assert provider.get("BUSINESS_NAME") == "Acme"


@pytest.mark.asyncio
async def test_settings_api_round_trip(client: AsyncClient, admin_user, auth_headers):
    headers = auth_headers(admin_user)

    updated = await client.put(
        "/settings", json={"settings": {"BUSINESS_NAME": "Acme", "PROMO": "on"}}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["BUSINESS_NAME"] == "Acme"

    deleted = await client.delete("/settings/PROMO", headers=headers)
    assert deleted.status_code == 204

    listed = await client.get("/settings", headers=headers)
    assert listed.json() == {"BUSINESS_NAME": "Acme"}


@pytest.mark.asyncio
async def test_protected_key_delete_conflicts(client: AsyncClient, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    await client.put("/settings", json={"settings": {"ADMIN_EMAIL": "ops@test.com"}}, headers=headers)

    response = await client.delete("/settings/ADMIN_EMAIL", headers=headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_settings_require_permission(client: AsyncClient, moderator_user, auth_headers):
    response = await client.get("/settings", headers=auth_headers(moderator_user))

    assert response.status_code == 403
    assert response.json()["required_permission"] == "settings.view"


@pytest.mark.asyncio
async def test_business_name_flows_into_emails(client: AsyncClient, admin_user, auth_headers, outbox):
    await client.put(
        "/settings", json={"settings": {"BUSINESS_NAME": "Acme Fertility"}},
        headers=auth_headers(admin_user),
    )

    await client.post("/auth/login", json={"email": "brand@test.com"})

    assert "Your Acme Fertility verification code" in outbox.messages[-1].body_html
