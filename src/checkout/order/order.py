"""Order and payment-attempt snapshots as reported by the backend ledger.

The backend owns these records: the checkout core reads them, never writes
them. Snapshots are rebuilt from JSON on every verification, so they are
plain immutable value objects rather than aggregates.
"""

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import structlog
from protean.fields import DateTime, Float, String, ValueObject

from checkout.domain import checkout

logger = structlog.get_logger(__name__)


class OrderStatus(Enum):
    ACTIVE = "ACTIVE"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


def normalize_status(value: Any) -> str | None:
    if value is None:
        return None
    status = str(value).strip().upper()
    return status or None


def parse_timestamp(value: Any) -> datetime | None:
    """Best-effort ISO-8601 parsing; display data must not fail verification."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        logger.debug("Ignoring unparseable timestamp", value=str(value))
        return None


def format_amount(value: float | None) -> str:
    """Render an amount the way it was quoted: ``500.0`` -> ``"500"``, ``99.5`` -> ``"99.5"``."""
    if value is None:
        return ""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return str(value)
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal(1)))
    return format(amount.normalize(), "f")


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


@checkout.value_object
class CustomerDetails:
    """Customer identity as echoed back on the order."""

    customer_id = String(max_length=100)
    customer_name = String(max_length=100)
    customer_phone = String(max_length=20)


@checkout.value_object
class Order:
    """Backend order snapshot.

    ``order_status`` is kept as reported (not restricted to ``OrderStatus``)
    because the processor may introduce states this client does not know;
    reconciliation treats any unknown status as still settling.
    """

    order_id = String(required=True, max_length=100)
    checkout_session_token = String(max_length=1000)
    order_amount = Float()
    order_currency = String(max_length=3)
    order_status = String(max_length=50)
    created_at = DateTime()
    customer_details = ValueObject(CustomerDetails)

    @property
    def display_amount(self) -> str:
        return format_amount(self.order_amount)

    @property
    def normalized_status(self) -> str | None:
        return normalize_status(self.order_status)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Order":
        """Build an order from the backend's JSON representation."""
        customer = payload.get("customer_details")
        customer_details = None
        if isinstance(customer, Mapping):
            customer_details = CustomerDetails(
                customer_id=_text(customer.get("customer_id")),
                customer_name=_text(customer.get("customer_name")),
                customer_phone=_text(customer.get("customer_phone")),
            )

        return cls(
            order_id=_text(payload.get("order_id")),
            checkout_session_token=_text(payload.get("payment_session_id")),
            order_amount=payload.get("order_amount"),
            order_currency=_text(payload.get("order_currency")),
            order_status=_text(payload.get("order_status")),
            created_at=parse_timestamp(payload.get("created_at")),
            customer_details=customer_details,
        )


@checkout.value_object
class PaymentAttemptRecord:
    """One payment attempt against an order (card, UPI, netbanking, wallet...)."""

    payment_id = String(max_length=100)
    amount = Float()
    method = String(max_length=50)
    status = String(max_length=50)
    gateway = String(max_length=100)
    timestamp = DateTime()

    @property
    def display_amount(self) -> str:
        return format_amount(self.amount)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PaymentAttemptRecord":
        method = payload.get("payment_method")
        if isinstance(method, Mapping):
            # Processor nests method details under the method name: {"upi": {...}}
            method = next(iter(method), None)

        return cls(
            payment_id=_text(payload.get("cf_payment_id")),
            amount=payload.get("payment_amount"),
            method=_text(method),
            status=_text(payload.get("payment_status")),
            gateway=_text(payload.get("payment_gateway")),
            timestamp=parse_timestamp(payload.get("payment_time")),
        )


def parse_payment_list(payload: Any) -> tuple[PaymentAttemptRecord, ...]:
    """Parse the payment-attempt list, in the order the backend returned it."""
    if not isinstance(payload, list):
        raise TypeError(f"Expected a list of payments, got {type(payload).__name__}")
    return tuple(PaymentAttemptRecord.from_payload(item) for item in payload if isinstance(item, Mapping))
