import asyncio
import time

import httpx
from fastapi.testclient import TestClient

from league_registration_api.app.core.db import utcnow_iso
from league_registration_api.app.main import create_app
from league_registration_api.app.services.gateway import GatewayError, compute_signature
from league_registration_api.app.services.payment_service import build_receipt

from .conftest import KEY_ID, KEY_SECRET, FakeGateway, registration_payload

INIT_URL = "/api/v1/payments/initialize"
VERIFY_URL = "/api/v1/payments/verify"


def verify_body(payment_id, order_id, gateway_payment_id, signature=None):
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": gateway_payment_id,
        "razorpay_signature": signature or compute_signature(KEY_SECRET, order_id, gateway_payment_id),
        "paymentId": payment_id,
    }


def test_initialize_creates_order(client, gateway, register):
    registration_id = register(leagueType="t20-2026")

    response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Payment initialized successfully"
    data = body["data"]
    assert data["orderId"] == "O1"
    assert data["amount"] == 5000
    assert data["currency"] == "INR"
    assert data["keyId"] == KEY_ID
    assert data["paymentId"]

    assert len(gateway.calls) == 1
    call = gateway.calls[0]
    assert call["amount"] == 500000
    assert call["notes"] == {
        "registrationId": registration_id,
        "leagueType": "t20-2026",
        "email": "a@x.com",
    }
    assert len(call["receipt"]) <= 40


def test_unknown_league_uses_default_price(client, gateway, register):
    registration_id = register(leagueType="u19-open")
    response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.json()["data"]["amount"] == 1000
    assert gateway.calls[0]["amount"] == 100000


def test_initialize_is_idempotent_while_pending(client, gateway, register):
    registration_id = register()

    first = client.post(INIT_URL, json={"registrationId": registration_id})
    second = client.post(INIT_URL, json={"registrationId": registration_id})

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["message"] == "Payment already initialized"
    assert second.json()["data"] == first.json()["data"]
    assert len(gateway.calls) == 1


def test_initialize_unknown_registration(client, gateway):
    response = client.post(INIT_URL, json={"registrationId": "nope"})
    assert response.status_code == 404
    assert response.json()["message"] == "Registration not found"
    assert gateway.calls == []


def test_initialize_requires_registration_id(client):
    response = client.post(INIT_URL, json={})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation Error"


def test_end_to_end_payment(client, register):
    registration_id = register(email="a@x.com", leagueType="trial")
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]
    assert order["orderId"] == "O1"
    assert order["amount"] == 1000

    body = verify_body(order["paymentId"], "O1", "P1")
    response = client.post(VERIFY_URL, json=body)
    assert response.status_code == 200
    payment = response.json()["data"]
    assert payment["status"] == "completed"
    assert payment["razorpayPaymentId"] == "P1"
    assert payment["amount"] == 100000

    # Repeating the same verification is harmless.
    again = client.post(VERIFY_URL, json=body)
    assert again.status_code == 200
    assert again.json()["data"]["status"] == "completed"

    status = client.get(f"/api/v1/payments/{order['paymentId']}").json()["data"]
    assert status["status"] == "completed"
    assert status["registration"]["id"] == registration_id
    assert status["registration"]["email"] == "a@x.com"


def test_tampered_signature_leaves_payment_pending(client, register):
    registration_id = register()
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]

    response = client.post(
        VERIFY_URL, json=verify_body(order["paymentId"], "O1", "P1", signature="0" * 64)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment signature"

    status = client.get(f"/api/v1/payments/{order['paymentId']}").json()["data"]
    assert status["status"] == "pending"
    assert status["razorpayPaymentId"] is None


def test_bad_signature_does_not_touch_completed_payment(client, register):
    registration_id = register()
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]
    client.post(VERIFY_URL, json=verify_body(order["paymentId"], "O1", "P1"))
    before = client.get(f"/api/v1/payments/{order['paymentId']}").json()["data"]

    response = client.post(
        VERIFY_URL, json=verify_body(order["paymentId"], "O1", "P1", signature="f" * 64)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment signature"

    after = client.get(f"/api/v1/payments/{order['paymentId']}").json()["data"]
    assert after["status"] == "completed"
    assert after["razorpayPaymentId"] == "P1"
    assert after["razorpaySignature"] == before["razorpaySignature"]
    assert after["razorpaySignature"] == compute_signature(KEY_SECRET, "O1", "P1")
    assert after["updatedAt"] == before["updatedAt"]


def test_signature_for_another_order_is_rejected(client, register):
    registration_id = register()
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]

    response = client.post(VERIFY_URL, json=verify_body(order["paymentId"], "O9", "P1"))
    assert response.status_code == 400
    assert response.json()["message"] == "Order id does not match this payment"


def test_verify_unknown_payment(client):
    response = client.post(VERIFY_URL, json=verify_body("missing", "O1", "P1"))
    assert response.status_code == 404
    assert response.json()["message"] == "Payment not found"


def test_completed_payment_rejects_other_gateway_payment(client, register):
    registration_id = register()
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]
    client.post(VERIFY_URL, json=verify_body(order["paymentId"], "O1", "P1"))

    response = client.post(VERIFY_URL, json=verify_body(order["paymentId"], "O1", "P2"))
    assert response.status_code == 400
    assert response.json()["message"] == "Payment already completed for this registration"


def test_initialize_after_completion_is_rejected(client, gateway, register):
    registration_id = register()
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]
    client.post(VERIFY_URL, json=verify_body(order["paymentId"], "O1", "P1"))

    response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.status_code == 400
    assert response.json()["message"] == "Payment already completed for this registration"
    assert len(gateway.calls) == 1


def test_failed_payment_is_superseded(app, client, gateway, register):
    registration_id = register()
    first = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]
    with app.state.db.cursor() as cursor:
        cursor.execute("UPDATE payments SET status = 'failed' WHERE id = ?", (first["paymentId"],))

    response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.status_code == 201
    second = response.json()["data"]
    assert second["orderId"] == "O2"
    assert second["paymentId"] != first["paymentId"]
    assert len(gateway.calls) == 2

    old = client.get(f"/api/v1/payments/{first['paymentId']}").json()["data"]
    assert old["status"] == "failed"

    # The superseded attempt cannot be completed while the new one is active.
    response = client.post(VERIFY_URL, json=verify_body(first["paymentId"], "O1", "P1"))
    assert response.status_code == 400


def test_concurrent_initialize_returns_winning_order(app, client, gateway, register):
    registration_id = register()

    def insert_winner():
        now = utcnow_iso()
        with app.state.db.cursor() as cursor:
            cursor.execute(
                "INSERT INTO payments (id, registration_id, amount, currency, razorpay_order_id, "
                "status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                ("winner", registration_id, 100000, "INR", "O-WIN", "pending", now, now),
            )

    gateway.before_create = insert_winner

    response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.status_code == 200
    assert response.json()["data"]["paymentId"] == "winner"
    assert response.json()["data"]["orderId"] == "O-WIN"

    with app.state.db.cursor() as cursor:
        count = cursor.execute(
            "SELECT COUNT(*) AS count FROM payments WHERE registration_id = ?", (registration_id,)
        ).fetchone()["count"]
    assert count == 1


def test_gateway_failure_is_internal_error(client, gateway, register):
    registration_id = register()
    gateway.error = GatewayError("Razorpay error (401): Authentication failed")

    response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to initialize payment"}

    # Nothing was persisted, so a retry creates a fresh order.
    gateway.error = None
    assert client.post(INIT_URL, json={"registrationId": registration_id}).status_code == 201


def test_gateway_failure_detail_in_debug_mode(settings, gateway, mailer):
    settings.debug = True
    app = create_app(settings=settings, gateway=gateway, mailer=mailer)
    gateway.error = GatewayError("Razorpay error (401): Authentication failed")
    with TestClient(app) as client:
        registration_id = client.post(
            "/api/v1/registrations", json=registration_payload()
        ).json()["data"]["id"]
        response = client.post(INIT_URL, json={"registrationId": registration_id})
    assert response.status_code == 500
    assert response.json()["error"] == "Razorpay error (401): Authentication failed"


def test_status_of_deleted_registration(client, admin_headers, register):
    registration_id = register()
    order = client.post(INIT_URL, json={"registrationId": registration_id}).json()["data"]
    client.delete(f"/api/v1/registrations/{registration_id}", headers=admin_headers)

    response = client.get(f"/api/v1/payments/{order['paymentId']}")
    assert response.status_code == 200
    assert response.json()["data"]["registration"] is None


def test_get_unknown_payment(client):
    response = client.get("/api/v1/payments/missing")
    assert response.status_code == 404


def test_build_receipt():
    assert build_receipt("abcdefghijklmnopqrstuvwxyz", now_ms=1700000000123) == "opqrstuvwxyz_00000123"
    assert len(build_receipt("x" * 100, now_ms=1)) <= 40


class SlowGateway(FakeGateway):
    def create_order(self, amount, currency, receipt, notes=None):
        time.sleep(1)
        return super().create_order(amount, currency, receipt, notes)


def test_slow_gateway_does_not_stall_other_requests(settings, mailer):
    app = create_app(settings=settings, gateway=SlowGateway(order_ids=["O1"]), mailer=mailer)
    app.state.db.init()

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://league.test") as client:
            created = await client.post("/api/v1/registrations", json=registration_payload())
            registration_id = created.json()["data"]["id"]

            initialize = asyncio.create_task(
                client.post(INIT_URL, json={"registrationId": registration_id})
            )
            await asyncio.sleep(0.1)
            started = time.perf_counter()
            health = await client.get("/")
            latency = time.perf_counter() - started
            return health, latency, await initialize

    health, latency, initialized = asyncio.run(scenario())
    assert health.status_code == 200
    assert latency < 0.5
    assert initialized.status_code == 201
    assert initialized.json()["data"]["orderId"] == "O1"
