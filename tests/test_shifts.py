"""Tests for the admin shift ledger endpoints."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.core.config import GeofencePolicy, settings
from geoclock.models.shift import Shift

T0 = datetime(2026, 6, 1, 8, 0, tzinfo=timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


async def _shift(db: AsyncSession, worker_id: int, start: datetime, end: datetime | None = None, location_id=None) -> int:
    shift = Shift(worker_id=worker_id, clock_in=start, clock_out=end, location_id=location_id)
    db.add(shift)
    await db.commit()
    return shift.id


@pytest.mark.asyncio
async def test_list_shifts_newest_first_with_names(
    async_client: AsyncClient, db_session: AsyncSession, make_worker, make_location
):
    worker = await make_worker(name="Jo")
    site = await make_location("L1", name="Depot")
    old = await _shift(db_session, worker.id, T0, T0 + timedelta(hours=8), site.id)
    new = await _shift(db_session, worker.id, T0 + timedelta(days=1))

    resp = await async_client.get("/api/v1/admin/shifts")
    assert resp.status_code == 200
    data = resp.json()
    assert [s["id"] for s in data] == [new, old]
    assert data[0]["workerName"] == "Jo"
    assert data[1]["locationName"] == "Depot"
    assert data[0]["locationName"] is None


@pytest.mark.asyncio
async def test_list_filters(
    async_client: AsyncClient, db_session: AsyncSession, make_worker
):
    a = await make_worker(code="A1")
    b = await make_worker(code="B1")
    await _shift(db_session, a.id, T0, T0 + timedelta(hours=1))
    open_b = await _shift(db_session, b.id, T0 + timedelta(days=2))

    by_worker = await async_client.get(f"/api/v1/admin/shifts?worker_id={a.id}")
    assert len(by_worker.json()) == 1

    open_only = await async_client.get("/api/v1/admin/shifts?open_only=true")
    assert [s["id"] for s in open_only.json()] == [open_b]

    ranged = await async_client.get(
        "/api/v1/admin/shifts",
        params={"start": _iso(T0 + timedelta(days=1)), "end": _iso(T0 + timedelta(days=3))},
    )
    assert [s["id"] for s in ranged.json()] == [open_b]


@pytest.mark.asyncio
async def test_flagged_only_lists_outside_geofence_shifts(
    async_client: AsyncClient, db_session: AsyncSession, make_worker, make_location
):
    await make_worker(code="A1")
    inside = await make_worker(code="B1")
    await make_location("L1", radius=50, name="Depot")
    normal = await _shift(db_session, inside.id, T0, T0 + timedelta(hours=8))

    with patch.object(settings, "GEOFENCE_POLICY", GeofencePolicy.WARN):
        resp = await async_client.post(
            "/api/v1/clock",
            json={"employeeCode": "A1", "pin": "1234", "lat": 10.0, "lng": 10.0},
        )
    assert resp.status_code == 200
    flagged_id = resp.json()["shift"]["id"]

    flagged = await async_client.get("/api/v1/admin/shifts?flagged_only=true")
    assert flagged.status_code == 200
    data = flagged.json()
    assert [s["id"] for s in data] == [flagged_id]
    assert data[0]["locationName"] is None
    assert "nearest: Depot" in data[0]["notes"]

    everything = await async_client.get("/api/v1/admin/shifts")
    assert {s["id"] for s in everything.json()} == {flagged_id, normal}


@pytest.mark.asyncio
async def test_edit_closes_shift(async_client: AsyncClient, db_session: AsyncSession, make_worker):
    worker = await make_worker()
    shift_id = await _shift(db_session, worker.id, T0)

    resp = await async_client.patch(
        f"/api/v1/admin/shifts/{shift_id}",
        json={"clockOut": _iso(T0 + timedelta(hours=7, minutes=30)), "notes": "Forgot to clock out"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["clockOut"].startswith("2026-06-01T15:30:00")
    assert data["notes"] == "Forgot to clock out"


@pytest.mark.asyncio
async def test_edit_rejects_end_before_start(
    async_client: AsyncClient, db_session: AsyncSession, make_worker
):
    worker = await make_worker()
    shift_id = await _shift(db_session, worker.id, T0)
    resp = await async_client.patch(
        f"/api/v1/admin/shifts/{shift_id}", json={"clockOut": _iso(T0 - timedelta(minutes=1))}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_reopening_second_shift_conflicts(
    async_client: AsyncClient, db_session: AsyncSession, make_worker
):
    worker = await make_worker()
    closed = await _shift(db_session, worker.id, T0, T0 + timedelta(hours=1))
    await _shift(db_session, worker.id, T0 + timedelta(hours=2))

    resp = await async_client.patch(f"/api/v1/admin/shifts/{closed}", json={"clockOut": None})
    assert resp.status_code == 409
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_edit_unknown_location_rejected(
    async_client: AsyncClient, db_session: AsyncSession, make_worker
):
    worker = await make_worker()
    shift_id = await _shift(db_session, worker.id, T0)
    resp = await async_client.patch(f"/api/v1/admin/shifts/{shift_id}", json={"locationId": 999})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_edit_requires_fields(async_client: AsyncClient, db_session: AsyncSession, make_worker):
    worker = await make_worker()
    shift_id = await _shift(db_session, worker.id, T0)
    resp = await async_client.patch(f"/api/v1/admin/shifts/{shift_id}", json={})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_shift(async_client: AsyncClient, db_session: AsyncSession, make_worker):
    worker = await make_worker()
    shift_id = await _shift(db_session, worker.id, T0)

    resp = await async_client.delete(f"/api/v1/admin/shifts/{shift_id}")
    assert resp.status_code == 200
    again = await async_client.delete(f"/api/v1/admin/shifts/{shift_id}")
    assert again.status_code == 404
