"""Tests for the invoices API."""
from uuid import uuid4

import pytest
from httpx import AsyncClient


async def _book(authed_client: AsyncClient, client_id, day: int) -> dict:
    response = await authed_client.post(
        "/appointments",
        json={
            "client_id": str(client_id),
            "start_time": f"2030-06-0{day}T10:00:00Z",
            "end_time": f"2030-06-0{day}T11:00:00Z",
        },
    )
    assert response.status_code == 201
    return response.json()["appointments"][0]


@pytest.mark.asyncio
async def test_list_and_filter_invoices(
    authed_client: AsyncClient, weekday_template, practice_client, invoiced_client
):
    alice = await _book(authed_client, practice_client.id, 3)
    await _book(authed_client, invoiced_client.id, 4)
    await authed_client.patch(f"/appointments/{alice['id']}/status", json={"paid": True})

    everything = (await authed_client.get("/invoices")).json()
    assert {i["client_name"] for i in everything} == {"Alice Martin", "Bruno Leroy"}

    paid = (await authed_client.get("/invoices", params={"status": "paid"})).json()
    assert len(paid) == 1
    assert paid[0]["appointment_id"] == alice["id"]
    assert paid[0]["amount"] == "80.00"
    assert paid[0]["paid_at"] is not None
    assert paid[0]["appointment_start"].startswith("2030-06-03T10:00:00")

    bruno = (await authed_client.get("/invoices", params={"client_id": str(invoiced_client.id)})).json()
    assert [i["amount"] for i in bruno] == ["90.00"]
    assert bruno[0]["status"] == "unpaid"


@pytest.mark.asyncio
async def test_invoice_outlives_its_appointment(authed_client: AsyncClient, weekday_template, practice_client):
    appointment = await _book(authed_client, practice_client.id, 3)
    invoice = (await authed_client.get("/invoices")).json()[0]

    await authed_client.delete(f"/appointments/{appointment['id']}")

    fetched = await authed_client.get(f"/invoices/{invoice['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["appointment_id"] is None
    assert fetched.json()["appointment_start"] is None

    paid = await authed_client.patch(f"/invoices/{invoice['id']}", json={"paid": True})
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"

    unpaid = await authed_client.patch(f"/invoices/{invoice['id']}", json={"paid": False})
    assert unpaid.json()["status"] == "unpaid"
    assert unpaid.json()["paid_at"] is None


@pytest.mark.asyncio
async def test_unknown_invoice(authed_client: AsyncClient):
    assert (await authed_client.get(f"/invoices/{uuid4()}")).status_code == 404
    assert (await authed_client.patch(f"/invoices/{uuid4()}", json={"paid": True})).status_code == 404


@pytest.mark.asyncio
async def test_invoices_require_session(client: AsyncClient):
    assert (await client.get("/invoices")).status_code == 401
