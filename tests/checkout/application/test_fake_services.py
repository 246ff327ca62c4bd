"""Tests for the in-memory order ledger and the fake services built on it."""

import asyncio

import pytest
from checkout.lifecycle.errors import VerificationError
from checkout.request.payment_request import PaymentRequest


def _request():
    return PaymentRequest(
        amount=750.0,
        customer_name="Ravi Kumar",
        customer_email="ravi@example.com",
        customer_phone="9123456780",
    )


class TestFakeOrderLedger:
    def test_open_order(self, ledger):
        payload = ledger.open_order(_request())
        assert payload["order_id"].startswith("order_")
        assert payload["payment_session_id"].startswith("session_")
        assert payload["order_status"] == "ACTIVE"
        assert payload["customer_details"]["customer_id"] == "cust_9123456780"
        assert ledger.payments[payload["order_id"]] == []

    def test_open_order_with_explicit_id(self, ledger):
        assert ledger.open_order(_request(), order_id="order_fixed")["order_id"] == "order_fixed"

    def test_add_payment_defaults_to_order_amount(self, ledger):
        order_id = ledger.open_order(_request())["order_id"]
        payment = ledger.add_payment(order_id, method="card")
        assert payment["payment_amount"] == 750.0
        assert payment["payment_method"] == "card"
        assert payment["payment_status"] == "SUCCESS"


class TestFakeOrderService:
    def test_default_creates_order(self, order_service, ledger):
        result = asyncio.run(order_service.create_order(_request()))
        assert result.success is True
        assert result.order.order_id in ledger.orders
        assert result.order.checkout_session_token

    def test_configured_failure(self, order_service, ledger):
        order_service.configure(should_succeed=False, failure_message="Merchant account suspended")
        result = asyncio.run(order_service.create_order(_request()))
        assert result.success is False
        assert result.message == "Merchant account suspended"
        assert ledger.orders == {}

    def test_omit_session(self, order_service):
        order_service.configure(omit_session=True)
        result = asyncio.run(order_service.create_order(_request()))
        assert result.success is True
        assert result.order.checkout_session_token is None

    def test_call_logging(self, order_service):
        asyncio.run(order_service.create_order(_request()))
        assert order_service.calls[0]["method"] == "create_order"
        assert order_service.calls[0]["payload"]["amount"] == 750.0


class TestFakeVerificationService:
    def test_reads_ledger(self, ledger, verification_service):
        order_id = ledger.open_order(_request())["order_id"]
        ledger.set_status(order_id, "PAID")
        ledger.add_payment(order_id)

        order = asyncio.run(verification_service.fetch_order(order_id))
        attempts = asyncio.run(verification_service.fetch_payments(order_id))

        assert order.order_status == "PAID"
        assert len(attempts) == 1

    def test_unknown_order(self, verification_service):
        with pytest.raises(VerificationError):
            asyncio.run(verification_service.fetch_order("order_missing"))

    def test_simulated_failures(self, ledger, verification_service):
        order_id = ledger.open_order(_request())["order_id"]
        verification_service.fail_fetch(order=False, payments=True)

        assert asyncio.run(verification_service.fetch_order(order_id)).order_id == order_id
        with pytest.raises(VerificationError):
            asyncio.run(verification_service.fetch_payments(order_id))
