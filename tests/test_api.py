"""End-to-end tests through the HTTP API."""

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from maib_gateway.api.deps import get_gateway_client, get_gateway_config
from maib_gateway.database import get_session
from maib_gateway.main import app


@pytest_asyncio.fixture
async def api(db_session, mock_client, capture_config):
    async def _session():
        yield db_session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_gateway_client] = lambda: mock_client
    app.dependency_overrides[get_gateway_config] = lambda: capture_config

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _checkout(api, total="150.00") -> dict:
    order = (await api.post("/api/orders", json={"total_amount": total, "ip_address": "10.1.1.1"})).json()
    response = await api.post(f"/api/checkout/{order['id']}")
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_health(api):
    response = await api.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_checkout_and_return(api, mock_client):
    checkout = await _checkout(api)
    trans_id = checkout["payment"]["remote_id"]

    assert checkout["payment"]["state"] == "new"
    assert "trans_id=" in checkout["redirect_url"]

    response = await api.get("/api/checkout/return", params={"trans_id": trans_id})

    assert response.status_code == 200
    body = response.json()
    assert body["payment"]["state"] == "completed"
    assert body["messages"] == [{"type": "status", "text": "Your transaction was successful."}]
    assert mock_client.calls_to("get_transaction_status")[0]["client_ip"] == "10.1.1.1"


@pytest.mark.asyncio
async def test_return_posted_as_form(api, mock_client):
    checkout = await _checkout(api)
    trans_id = checkout["payment"]["remote_id"]

    response = await api.post("/api/checkout/return", data={"trans_id": trans_id})

    assert response.status_code == 200
    assert response.json()["payment"]["state"] == "completed"
    assert mock_client.calls_to("get_transaction_status")[0]["transaction_id"] == trans_id

    order = (await api.get(f"/api/orders/{checkout['payment']['order_id']}")).json()
    assert Decimal(order["balance"]) == 0

    again = await api.post(f"/api/checkout/{order['id']}")
    assert again.status_code == 422
    assert len(mock_client.calls_to("register_transaction")) == 1


@pytest.mark.asyncio
async def test_posted_return_without_trans_id(api):
    response = await api.post("/api/checkout/return", data={})
    assert response.status_code == 400
    assert response.json()["error"] == "MissingTransactionId"


@pytest.mark.asyncio
async def test_return_without_trans_id(api):
    response = await api.get("/api/checkout/return")
    assert response.status_code == 400
    assert response.json()["error"] == "MissingTransactionId"


@pytest.mark.asyncio
async def test_return_for_unknown_transaction(api):
    response = await api.get("/api/checkout/return", params={"trans_id": "nope"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_declined_return_deletes_payment(api, mock_client):
    checkout = await _checkout(api)
    mock_client.script("get_transaction_status", {"RESULT": "DECLINED", "RESULT_CODE": "116"})

    response = await api.get("/api/checkout/return", params={"trans_id": checkout["payment"]["remote_id"]})

    assert response.status_code == 402
    assert "116" in response.json()["detail"]
    assert (await api.get(f"/api/payments/{checkout['payment']['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_cancel(api):
    response = await api.get("/api/checkout/cancel")
    assert response.status_code == 200
    assert response.json()["messages"][0]["type"] == "status"
    assert (await api.post("/api/checkout/cancel")).status_code == 200


@pytest.mark.asyncio
async def test_authorize_capture_refund(api, authorize_config):
    app.dependency_overrides[get_gateway_config] = lambda: authorize_config
    checkout = await _checkout(api)
    payment_id = checkout["payment"]["id"]

    returned = await api.get("/api/checkout/return", params={"trans_id": checkout["payment"]["remote_id"]})
    assert returned.json()["payment"]["state"] == "authorization"

    refund_too_early = await api.post(f"/api/payments/{payment_id}/refund")
    assert refund_too_early.status_code == 409

    captured = await api.post(f"/api/payments/{payment_id}/capture", json={"amount": "120.00"})
    assert captured.status_code == 200
    assert captured.json()["payment"]["state"] == "completed"
    assert Decimal(captured.json()["payment"]["amount"]) == Decimal("120.00")

    too_much = await api.post(f"/api/payments/{payment_id}/refund", json={"amount": "500"})
    assert too_much.status_code == 422

    refunded = await api.post(f"/api/payments/{payment_id}/refund")
    assert refunded.status_code == 200
    assert refunded.json()["payment"]["state"] == "refunded"
    assert Decimal(refunded.json()["payment"]["refunded_amount"]) == Decimal("120.00")

    trace = (await api.get(f"/api/payments/{payment_id}/trace")).json()
    assert [entry["action"] for entry in trace["audit_trail"]] == [
        "payment_registered",
        "payment_authorized",
        "payment_captured",
        "payment_refunded",
    ]


@pytest.mark.asyncio
async def test_void(api, authorize_config):
    app.dependency_overrides[get_gateway_config] = lambda: authorize_config
    checkout = await _checkout(api)
    payment_id = checkout["payment"]["id"]
    await api.get("/api/checkout/return", params={"trans_id": checkout["payment"]["remote_id"]})

    response = await api.post(f"/api/payments/{payment_id}/void")

    assert response.status_code == 200
    assert response.json()["payment"] is None
    assert (await api.get(f"/api/payments/{payment_id}")).status_code == 404


@pytest.mark.asyncio
async def test_close_day(api):
    response = await api.post("/api/gateway/close-day")
    assert response.status_code == 200
    assert response.json()["messages"] == [{"type": "status", "text": "Business day closed."}]
