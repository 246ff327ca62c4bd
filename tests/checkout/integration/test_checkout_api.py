"""Integration tests for the Checkout API endpoints via TestClient."""

import pytest
from checkout.api import checkout_router, register_exception_handlers
from checkout.config import CheckoutSettings
from checkout.container import build_services, set_services
from checkout.lifecycle.errors import INVALID_CALLBACK, VERIFICATION_FAILED
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.exceptions import ValidationError


def _make_app():
    app = FastAPI()
    app.include_router(checkout_router)
    register_exception_handlers(app)
    return app


@pytest.fixture()
def services():
    services = build_services(CheckoutSettings(backend="fake", return_url="http://testserver/payment/callback"))
    set_services(services)
    return services


@pytest.fixture()
def client(services):
    return TestClient(_make_app())


def _checkout(client, **overrides):
    body = {
        "amount": 500,
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "customer_phone": "9876543210",
        "note": "Consultation fee",
    }
    body.update(overrides)
    response = client.post("/checkout", json=body)
    assert response.status_code == 200
    return response.json()


class TestSubmitCheckoutAPI:
    def test_inline_checkout_succeeds(self, client):
        body = _checkout(client)

        assert body["ui_status"] == "Succeeded"
        assert body["title"] == "Payment Successful!"
        assert body["message"] == "Payment completed successfully!"
        assert body["order"]["amount"] == "500"
        assert body["order"]["customer_name"] == "Asha Rao"
        assert len(body["payments"]) == 1
        assert body["actions"] == ["make_another_payment"]

    def test_invalid_phone_stays_idle(self, client, services):
        body = _checkout(client, customer_phone="12345")

        assert body["ui_status"] == "Idle"
        assert body["message"] == "Please enter a valid 10-digit phone number"
        assert body["error_detail"] == "customer_phone"
        assert services.order_service.calls == []

    def test_non_numeric_amount_reaches_domain_validation(self, client):
        body = _checkout(client, amount="lots")

        assert body["ui_status"] == "Idle"
        assert body["message"] == "Please enter a valid amount"

    def test_numeric_phone_accepted(self, client):
        assert _checkout(client, customer_phone=9876543210)["ui_status"] == "Succeeded"

    def test_order_service_failure(self, client, services):
        services.order_service.configure(should_succeed=False, failure_message="insufficient limit")

        body = _checkout(client)

        assert body["ui_status"] == "Error"
        assert body["message"] == "insufficient limit"
        assert body["actions"] == ["go_home", "contact_support"]

    def test_widget_failure(self, client):
        client.post("/checkout/sandbox/configure", json={"should_succeed": False, "failure_message": "Card declined"})

        body = _checkout(client)

        assert body["ui_status"] == "Error"
        assert body["message"] == "Card declined"
        assert body["error_kind"] == "CheckoutError"

    def test_uninitialized_widget(self):
        services = build_services(CheckoutSettings(backend="http"))
        set_services(services)

        body = _checkout(TestClient(_make_app()))

        assert body["ui_status"] == "Error"
        assert body["message"] == "Payment system not initialized. Please refresh the page and try again."


class TestRedirectFlowAPI:
    def test_hand_off_then_callback(self):
        services = build_services(
            CheckoutSettings(
                backend="fake",
                redirect_target="_self",
                return_url="http://testserver/payment/callback",
            )
        )
        set_services(services)
        client = TestClient(_make_app())

        handed_off = _checkout(client)
        assert handed_off["ui_status"] == "AwaitingCheckout"
        assert handed_off["redirect_url"] is not None

        response = client.get("/payment/callback", params={"order_id": handed_off["order_id"]})

        assert response.status_code == 200
        assert response.json()["ui_status"] == "Succeeded"
        assert response.json()["order_id"] == handed_off["order_id"]

    def test_callback_without_order_id(self, client, services):
        response = client.get("/payment/callback")

        body = response.json()
        assert response.status_code == 200
        assert body["ui_status"] == "Error"
        assert body["message"] == INVALID_CALLBACK
        assert services.verification_service.calls == []

    def test_callback_for_unknown_order(self, client):
        body = client.get("/payment/callback", params={"order_id": "order_nope"}).json()

        assert body["ui_status"] == "Error"
        assert body["message"] == VERIFICATION_FAILED


class TestVerifyOrderAPI:
    def test_pending_then_settled(self, client, services):
        client.post("/checkout/sandbox/configure", json={"settle_status": "ACTIVE"})
        pending = _checkout(client)
        assert pending["ui_status"] == "Pending"
        assert pending["actions"] == ["refresh_status"]

        services.ledger.set_status(pending["order_id"], "PAID")
        response = client.post(f"/orders/{pending['order_id']}/verify")

        assert response.status_code == 200
        assert response.json()["ui_status"] == "Succeeded"

    def test_poll_gives_up_while_pending(self):
        services = build_services(CheckoutSettings(backend="fake", poll_attempts=2, poll_interval_seconds=0))
        set_services(services)
        services.ledger.put_order({"order_id": "order_slow", "order_amount": 500, "order_status": "ACTIVE"})
        client = TestClient(_make_app())

        body = client.post("/orders/order_slow/verify", params={"poll": "true"}).json()

        assert body["ui_status"] == "Pending"
        fetches = [c for c in services.verification_service.calls if c["method"] == "fetch_order"]
        assert len(fetches) == 3

    def test_unknown_order(self, client):
        body = client.post("/orders/order_nope/verify").json()
        assert body["ui_status"] == "Error"
        assert body["error_kind"] == "VerificationError"


class TestSandboxAPI:
    def test_configure(self, client):
        response = client.post("/checkout/sandbox/configure", json={"should_succeed": False})

        assert response.status_code == 200
        assert response.json()["should_succeed"] is False
        assert response.json()["failure_message"] == "Payment failed"

    def test_disabled_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/checkout/sandbox/configure", json={})
        assert response.status_code == 403

    def test_requires_fake_backend(self):
        set_services(build_services(CheckoutSettings(backend="http", checkout_page_url="https://pay.example/c")))
        response = TestClient(_make_app()).post("/checkout/sandbox/configure", json={})
        assert response.status_code == 400


class TestHealthAPI:
    def test_reports_widget_ready(self, client):
        body = client.get("/health").json()
        assert body == {"status": "ok", "backend": "fake", "checkout_widget": "ready"}

    def test_reports_widget_not_initialized(self):
        set_services(build_services(CheckoutSettings(backend="http")))
        body = TestClient(_make_app()).get("/health").json()
        assert body["checkout_widget"] == "not_initialized"


class TestValidationErrorHandler:
    def test_validation_error_answered_with_422(self):
        app = _make_app()

        @app.get("/illegal")
        async def illegal():
            raise ValidationError({"status": ["Cannot transition from Succeeded to Verifying"]})

        response = TestClient(app).get("/illegal")

        assert response.status_code == 422
        assert response.json() == {"detail": {"status": ["Cannot transition from Succeeded to Verifying"]}}
