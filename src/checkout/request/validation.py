"""Boundary validation for payment submissions.

Runs before the order service is contacted. Raw form input (snake_case or the
camelCase keys the web form posts) is turned into a ``PaymentRequest``, or a
``ValidationError`` naming exactly one field, picked in a fixed order so the
customer always sees the most relevant problem first.
"""

from collections.abc import Mapping
from typing import Any

from protean.exceptions import ValidationError

from checkout.request.payment_request import PaymentRequest

FIELD_PRIORITY = ("amount", "customer_name", "customer_phone", "customer_email", "currency", "note")

FIELD_MESSAGES = {
    "amount": "Please enter a valid amount",
    "customer_name": "Customer name is required",
    "customer_phone": "Please enter a valid 10-digit phone number",
    "customer_email": "Please enter a valid email address",
    "currency": "Unsupported currency",
    "note": "Order note is too long",
}

_KEY_ALIASES = {
    "amount": "amount",
    "currency": "currency",
    "customer_name": "customer_name",
    "customerName": "customer_name",
    "customer_email": "customer_email",
    "customerEmail": "customer_email",
    "customer_phone": "customer_phone",
    "customerPhone": "customer_phone",
    "note": "note",
    "orderNote": "note",
}


def _normalize(data: Mapping[str, Any], currency: str | None) -> dict:
    values: dict[str, Any] = {}
    for key, value in data.items():
        field = _KEY_ALIASES.get(key)
        if field is None:
            continue
        if isinstance(value, str) and value.strip() == "":
            value = None
        values[field] = value

    if currency and not values.get("currency"):
        values["currency"] = currency
    return values


def field_error(exc: ValidationError) -> tuple[str, str]:
    """Return the single ``(field, message)`` pair to show for ``exc``."""
    messages = exc.messages or {}
    for field in FIELD_PRIORITY:
        if field in messages:
            return field, FIELD_MESSAGES[field]

    field = next(iter(messages), "request")
    detail = messages.get(field) or ["Invalid payment details"]
    return field, str(detail[0])


def build_payment_request(
    data: Mapping[str, Any] | PaymentRequest,
    *,
    require_email: bool = True,
    currency: str | None = None,
) -> PaymentRequest:
    """Build a ``PaymentRequest`` from raw input or raise a one-field ``ValidationError``."""
    errors: dict[str, list[str]] = {}
    request = None

    if isinstance(data, PaymentRequest):
        request = data
        email = data.customer_email
        requested_currency = data.currency
    else:
        values = _normalize(data, currency)
        email = values.get("customer_email")
        requested_currency = values.get("currency")
        try:
            request = PaymentRequest(**values)
        except ValidationError as exc:
            errors.update(exc.messages)

    # The deployment collects in one currency only
    if currency and requested_currency != currency:
        errors.setdefault("currency", [f"Only {currency} is accepted"])

    if require_email and not email:
        errors.setdefault("customer_email", ["Email is required"])

    if errors:
        field, message = field_error(ValidationError(errors))
        raise ValidationError({field: [message]})

    return request


def is_valid_payment_request(
    data: Mapping[str, Any] | PaymentRequest,
    *,
    require_email: bool = True,
    currency: str | None = None,
) -> bool:
    try:
        build_payment_request(data, require_email=require_email, currency=currency)
    except ValidationError:
        return False
    return True
