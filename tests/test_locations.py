"""Tests for the admin location registry and clock-check diagnostics."""

import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, **overrides) -> dict:
    body = {"name": "Main Yard", "code": "YARD", "lat": 40.0, "lng": -75.0, "radiusMeters": 100}
    body.update(overrides)
    resp = await client.post("/api/v1/admin/locations", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_and_get_location(async_client: AsyncClient):
    created = await _create(async_client)
    assert created["code"] == "YARD"
    assert created["radiusMeters"] == 100
    assert created["isActive"] is True
    assert created["isAdhoc"] is False

    resp = await async_client.get(f"/api/v1/admin/locations/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Main Yard"


@pytest.mark.asyncio
async def test_default_radius_is_200(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/admin/locations", json={"name": "Shop", "code": "SHOP", "lat": 1.0, "lng": 1.0}
    )
    assert resp.json()["radiusMeters"] == 200


@pytest.mark.asyncio
async def test_zero_radius_is_adhoc(async_client: AsyncClient):
    created = await _create(async_client, code="ANY", radiusMeters=0)
    assert created["isAdhoc"] is True


@pytest.mark.asyncio
async def test_duplicate_code_rejected(async_client: AsyncClient):
    await _create(async_client)
    resp = await async_client.post(
        "/api/v1/admin/locations",
        json={"name": "Other", "code": "YARD", "lat": 0.0, "lng": 0.0},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"lat": 91}, {"lng": -181}, {"radiusMeters": -1}, {"name": "  "}],
)
async def test_invalid_location_rejected(async_client: AsyncClient, overrides):
    body = {"name": "Bad", "code": "BAD", "lat": 0.0, "lng": 0.0, "radiusMeters": 10}
    body.update(overrides)
    resp = await async_client.post("/api/v1/admin/locations", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_location(async_client: AsyncClient):
    created = await _create(async_client)
    resp = await async_client.patch(
        f"/api/v1/admin/locations/{created['id']}", json={"radiusMeters": 250, "name": "Yard 2"}
    )
    assert resp.status_code == 200
    assert resp.json()["radiusMeters"] == 250
    assert resp.json()["name"] == "Yard 2"

    bad = await async_client.patch(f"/api/v1/admin/locations/{created['id']}", json={"lat": None})
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_delete_deactivates(async_client: AsyncClient):
    created = await _create(async_client)
    resp = await async_client.delete(f"/api/v1/admin/locations/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    listed = await async_client.get("/api/v1/admin/locations")
    assert listed.json()[0]["isActive"] is False
    active_only = await async_client.get("/api/v1/admin/locations?include_inactive=false")
    assert active_only.json() == []


@pytest.mark.asyncio
async def test_missing_location_is_404(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/admin/locations/9999")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


# ── Clock check ─────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_clock_check_inside(async_client: AsyncClient):
    created = await _create(async_client, lat=0.0, lng=0.0, radiusMeters=100)
    resp = await async_client.post(
        f"/api/v1/admin/locations/{created['id']}/clock-check", json={"lat": 0.0005, "lng": 0.0}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["allowed"] is True
    assert data["distance"] == 56
    assert data["providedInvalid"] is False


@pytest.mark.asyncio
async def test_clock_check_outside(async_client: AsyncClient):
    created = await _create(async_client, lat=0.0, lng=0.0, radiusMeters=100)
    resp = await async_client.post(
        f"/api/v1/admin/locations/{created['id']}/clock-check", json={"lat": 0.0045, "lng": 0.0}
    )
    data = resp.json()
    assert data["allowed"] is False
    assert data["distance"] == 500


@pytest.mark.asyncio
async def test_clock_check_flags_swapped_coordinates(async_client: AsyncClient):
    created = await _create(async_client)
    resp = await async_client.post(
        f"/api/v1/admin/locations/{created['id']}/clock-check", json={"lat": -75.0, "lng": 40.0}
    )
    data = resp.json()
    assert data["providedInvalid"] is False

    resp = await async_client.post(
        f"/api/v1/admin/locations/{created['id']}/clock-check", json={"lat": 120.0, "lng": 40.0}
    )
    data = resp.json()
    assert data["providedInvalid"] is True
    assert data["maybeSwapped"] is True
    assert data["distance"] is None
    assert data["allowed"] is False


@pytest.mark.asyncio
async def test_clock_check_missing_coordinates(async_client: AsyncClient):
    created = await _create(async_client)
    resp = await async_client.post(
        f"/api/v1/admin/locations/{created['id']}/clock-check", json={}
    )
    data = resp.json()
    assert data["providedInvalid"] is True
    assert data["allowed"] is False
