"""Scope and API key regression tests."""
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from app.models import ApiScope


@pytest.mark.anyio
async def test_member_cannot_manage_apikeys(client, tenant):
    response = await client.get("/apikeys/1", headers=tenant.headers)
    assert response.status_code == 403
    payload = response.json()
    assert payload["error"]["code"] == "INSUFFICIENT_SCOPE"


@pytest.mark.anyio
async def test_invalid_key_is_rejected(client):
    response = await client.get("/audit-logs", headers={"X-API-Key": "odk_nope.nope"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.anyio
async def test_expired_key_is_rejected(client, tenant, make_api_key, db_session):
    token = f"expired-{uuid4().hex}"
    key = make_api_key(name=f"expired-{uuid4().hex}", key=token, organization=tenant.organization)
    key.expires_at = datetime.now(UTC) - timedelta(minutes=1)
    db_session.flush()

    response = await client.get("/audit-logs", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.anyio
async def test_tenant_admin_issues_key_for_own_organization(client, tenant):
    response = await client.post(
        "/apikeys",
        json={"name": f"ci-{uuid4().hex[:6]}", "scope": "member", "organization_id": 999999},
        headers=tenant.admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["organization_id"] == tenant.organization.id
    assert body["key"].startswith("odk_")

    # La clé fraîche donne accès aux journaux de l'organisation
    listing = await client.get("/audit-logs", headers={"Authorization": f"Bearer {body['key']}"})
    assert listing.status_code == 200
    actions = [r["description"] for r in listing.json()["data"]["records"]]
    assert any("api key created" in text for text in actions)


@pytest.mark.anyio
async def test_admin_can_revoke_key(client, tenant, make_api_key):
    key_token = f"revokable-{uuid4().hex}"
    api_key = make_api_key(name=f"revokable-{uuid4().hex}", key=key_token, organization=tenant.organization)

    response = await client.delete(f"/apikeys/{api_key.id}", headers=tenant.admin_headers)
    assert response.status_code == 204

    after = await client.get("/audit-logs", headers={"Authorization": f"Bearer {key_token}"})
    assert after.status_code == 401


@pytest.mark.anyio
async def test_admin_cannot_see_other_tenant_keys(client, make_tenant, make_api_key):
    tenant_a = make_tenant()
    tenant_b = make_tenant()
    foreign = make_api_key(name=f"b-{uuid4().hex}", key=uuid4().hex, scope=ApiScope.member,
                           organization=tenant_b.organization)

    response = await client.get(f"/apikeys/{foreign.id}", headers=tenant_a.admin_headers)
    assert response.status_code == 404
