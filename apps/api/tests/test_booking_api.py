"""Tests for public booking and the approval queue."""
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from app.services import appointment_service

REQUEST = {
    "first_name": "Chloe",
    "last_name": "Bernard",
    "email": "chloe@example.com",
    "phone": "06 12 34 56 78",
    "start_time": "2030-06-03T10:00:00Z",
    "end_time": "2030-06-03T11:00:00Z",
}


@pytest.mark.asyncio
async def test_free_slots_skip_booked_time(client: AsyncClient, weekday_template, practice_client, db):
    appointment_service.create_appointment(
        db,
        practice_client.id,
        datetime(2030, 6, 3, 10, tzinfo=timezone.utc),
        datetime(2030, 6, 3, 11, tzinfo=timezone.utc),
    )

    slots = (await client.get("/booking/slots", params={"date_start": "2030-06-03"})).json()

    assert len(slots) == 7
    starts = [datetime.fromisoformat(s["start_time"].replace("Z", "+00:00")) for s in slots]
    assert datetime(2030, 6, 3, 10, tzinfo=timezone.utc) not in starts
    assert starts[0] == datetime(2030, 6, 3, 9, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_weekend_has_no_slots(client: AsyncClient, weekday_template):
    slots = (await client.get("/booking/slots", params={"date_start": "2030-06-08"})).json()
    assert slots == []


@pytest.mark.asyncio
async def test_slot_range_limit(client: AsyncClient):
    response = await client.get(
        "/booking/slots", params={"date_start": "2030-06-01", "date_end": "2030-08-01"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_request_holds_slot_until_approved(client: AsyncClient, authed_client: AsyncClient, weekday_template):
    response = await client.post("/booking/requests", json=REQUEST)
    assert response.status_code == 201
    assert response.json()["status"] == "pending_approval"
    appointment_id = response.json()["appointment_id"]

    again = await client.post("/booking/requests", json={**REQUEST, "email": "other@example.com"})
    assert again.status_code == 409

    pending = (await authed_client.get("/approvals/appointments")).json()
    assert [p["id"] for p in pending] == [appointment_id]
    clients = (await authed_client.get("/approvals/clients")).json()
    assert [c["email"] for c in clients] == ["chloe@example.com"]

    approved = await authed_client.post(
        f"/approvals/appointments/{appointment_id}/approve", json={"rate": "75.00"}
    )
    assert approved.status_code == 200
    appointment = approved.json()["appointments"][0]
    assert appointment["confirmed"] is True
    assert appointment["invoice_amount"] == "75.00"
    assert (await authed_client.get("/approvals/appointments")).json() == []
    assert (await authed_client.get("/approvals/clients")).json() == []


@pytest.mark.asyncio
async def test_reject_request_frees_slot(client: AsyncClient, authed_client: AsyncClient, weekday_template):
    appointment_id = (await client.post("/booking/requests", json=REQUEST)).json()["appointment_id"]

    rejected = await authed_client.post(f"/approvals/appointments/{appointment_id}/reject")
    assert rejected.status_code == 204

    retry = await client.post("/booking/requests", json={**REQUEST, "email": "other@example.com"})
    assert retry.status_code == 201


@pytest.mark.asyncio
async def test_request_outside_hours(client: AsyncClient, weekday_template):
    response = await client.post(
        "/booking/requests",
        json={**REQUEST, "start_time": "2030-06-03T19:00:00Z", "end_time": "2030-06-03T20:00:00Z"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_request_in_the_past(client: AsyncClient, weekday_template):
    response = await client.post(
        "/booking/requests",
        json={**REQUEST, "start_time": "2020-06-01T10:00:00Z", "end_time": "2020-06-01T11:00:00Z"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_request_invalid_email(client: AsyncClient, weekday_template):
    response = await client.post("/booking/requests", json={**REQUEST, "email": "not-an-email"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reject_unconfirmed_client(client: AsyncClient, authed_client: AsyncClient, weekday_template):
    await client.post("/booking/requests", json=REQUEST)
    pending_client = (await authed_client.get("/approvals/clients")).json()[0]

    rejected = await authed_client.post(f"/approvals/clients/{pending_client['id']}/reject")

    assert rejected.status_code == 204
    assert (await authed_client.get("/approvals/appointments")).json() == []


@pytest.mark.asyncio
async def test_request_mixing_naive_and_aware_times(client: AsyncClient, weekday_template):
    inverted = await client.post(
        "/booking/requests",
        json={**REQUEST, "start_time": "2030-06-03T11:00:00Z", "end_time": "2030-06-03T10:00:00"},
    )
    assert inverted.status_code == 422

    response = await client.post(
        "/booking/requests",
        json={**REQUEST, "start_time": "2030-06-03T10:00:00", "end_time": "2030-06-03T11:00:00Z"},
    )
    assert response.status_code == 201
    start = datetime.fromisoformat(response.json()["start_time"].replace("Z", "+00:00"))
    assert start == datetime(2030, 6, 3, 10, tzinfo=timezone.utc)
