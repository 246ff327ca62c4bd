"""Configurable in-memory order backend for development and testing.

``FakeOrderLedger`` plays the backend's order/payment ledger. The fake order
and verification services share one ledger, so an order created through the
checkout flow can be settled (``set_status``, ``add_payment``) and then
verified exactly like a real one. Payloads are stored in the backend's JSON
shape and parsed on every read.
"""

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

from checkout.lifecycle.errors import VerificationError
from checkout.order.order import Order, OrderStatus, PaymentAttemptRecord, parse_payment_list
from checkout.request.payment_request import PaymentRequest
from checkout.services.port import CreateOrderResult, OrderService, VerificationService


class FakeOrderLedger:
    def __init__(self) -> None:
        self.orders: dict[str, dict] = {}
        self.payments: dict[str, list[dict]] = {}

    def open_order(self, request: PaymentRequest, order_id: str | None = None) -> dict:
        order_id = order_id or f"order_{uuid4().hex[:12]}"
        payload = {
            "order_id": order_id,
            "payment_session_id": f"session_{uuid4().hex}",
            "order_amount": request.amount,
            "order_currency": request.currency,
            "order_status": OrderStatus.ACTIVE.value,
            "created_at": datetime.now(UTC).isoformat(),
            "customer_details": {
                "customer_id": f"cust_{request.customer_phone}",
                "customer_name": request.customer_name,
                "customer_phone": request.customer_phone,
            },
        }
        self.orders[order_id] = payload
        self.payments.setdefault(order_id, [])
        return dict(payload)

    def put_order(self, payload: dict) -> None:
        """Seed an order payload directly, as the backend would return it."""
        self.orders[payload["order_id"]] = dict(payload)
        self.payments.setdefault(payload["order_id"], [])

    def set_status(self, order_id: str, status: str) -> None:
        self.orders[order_id]["order_status"] = status

    def add_payment(
        self,
        order_id: str,
        *,
        status: str = "SUCCESS",
        method: str = "upi",
        amount: float | None = None,
        gateway: str = "fake",
    ) -> dict:
        payment = {
            "cf_payment_id": f"pay_{uuid4().hex[:12]}",
            "payment_amount": amount if amount is not None else self.orders[order_id].get("order_amount"),
            "payment_method": method,
            "payment_status": status,
            "payment_gateway": gateway,
            "payment_time": datetime.now(UTC).isoformat(),
        }
        self.payments.setdefault(order_id, []).append(payment)
        return payment


class FakeOrderService(OrderService):
    """Fake order service; ``configure`` switches between success and failure.

    ``hold()`` parks ``create_order`` until ``release()``.
    """

    def __init__(self, ledger: FakeOrderLedger | None = None) -> None:
        self.ledger = ledger or FakeOrderLedger()
        self.should_succeed: bool = True
        self.failure_message: str | None = None
        self.omit_session: bool = False
        self.calls: list[dict] = []
        self._gate: asyncio.Event | None = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_message: str | None = None,
        omit_session: bool = False,
    ) -> None:
        self.should_succeed = should_succeed
        self.failure_message = failure_message
        self.omit_session = omit_session

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    async def create_order(self, request: PaymentRequest) -> CreateOrderResult:
        self.calls.append({"method": "create_order", "payload": request.to_payload()})
        if self._gate is not None:
            await self._gate.wait()

        if not self.should_succeed:
            return CreateOrderResult(success=False, message=self.failure_message)

        payload = self.ledger.open_order(request)
        if self.omit_session:
            payload.pop("payment_session_id", None)
        return CreateOrderResult(success=True, order=Order.from_payload(payload))


class FakeVerificationService(VerificationService):
    """Fake verification service reading from a ``FakeOrderLedger``.

    ``hold()`` parks every fetch until ``release()`` so tests can interleave
    navigation with an in-flight verification.
    """

    def __init__(self, ledger: FakeOrderLedger | None = None) -> None:
        self.ledger = ledger or FakeOrderLedger()
        self.fail_order: bool = False
        self.fail_payments: bool = False
        self.calls: list[dict] = []
        self._gate: asyncio.Event | None = None

    def fail_fetch(self, order: bool = True, payments: bool = False) -> None:
        self.fail_order = order
        self.fail_payments = payments

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    async def _wait(self) -> None:
        if self._gate is not None:
            await self._gate.wait()

    async def fetch_order(self, order_id: str) -> Order:
        self.calls.append({"method": "fetch_order", "order_id": order_id})
        await self._wait()

        if self.fail_order:
            raise VerificationError(detail="Simulated order fetch failure")
        payload = self.ledger.orders.get(order_id)
        if payload is None:
            raise VerificationError(detail=f"Order {order_id} not found")
        return Order.from_payload(payload)

    async def fetch_payments(self, order_id: str) -> tuple[PaymentAttemptRecord, ...]:
        self.calls.append({"method": "fetch_payments", "order_id": order_id})
        await self._wait()

        if self.fail_payments:
            raise VerificationError(detail="Simulated payment list failure")
        return parse_payment_list(list(self.ledger.payments.get(order_id, [])))
