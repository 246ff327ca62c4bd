"""PaymentRequest value object: what the customer asked to pay.

Built once at the boundary from raw form input and never changed afterwards.
Each invariant reports against the field it guards so the boundary can pick a
single field-level message to show.
"""

import math
import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from checkout.domain import checkout

DEFAULT_NOTE = "Payment for order"

PHONE_PATTERN = re.compile(r"^\d{10}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


@checkout.value_object
class PaymentRequest:
    """A validated request to collect ``amount`` from a customer."""

    amount = Float(required=True)
    currency = String(max_length=3, default="INR")
    customer_name = String(required=True, max_length=100)
    customer_email = String(max_length=254)
    customer_phone = String(required=True, max_length=10)
    note = String(max_length=500)

    @invariant.post
    def amount_must_be_positive(self):
        if self.amount is None or not math.isfinite(self.amount) or self.amount <= 0:
            raise ValidationError({"amount": ["Amount must be a finite number greater than zero"]})

    @invariant.post
    def customer_name_must_not_be_blank(self):
        if not (self.customer_name or "").strip():
            raise ValidationError({"customer_name": ["Customer name cannot be blank"]})

    @invariant.post
    def customer_phone_must_have_ten_digits(self):
        if not PHONE_PATTERN.match(self.customer_phone or ""):
            raise ValidationError({"customer_phone": ["Phone number must be exactly 10 digits"]})

    @invariant.post
    def customer_email_must_be_well_formed(self):
        if self.customer_email and not EMAIL_PATTERN.match(self.customer_email):
            raise ValidationError({"customer_email": [f"Invalid email address: {self.customer_email!r}"]})

    @invariant.post
    def currency_must_be_an_iso_code(self):
        if not CURRENCY_PATTERN.match(self.currency or ""):
            raise ValidationError({"currency": [f"Invalid currency code: {self.currency!r}"]})

    def to_payload(self) -> dict:
        """Request body for the order service's create-order endpoint."""
        return {
            "amount": self.amount,
            "currency": self.currency,
            "customerName": self.customer_name.strip(),
            "customerEmail": self.customer_email or "",
            "customerPhone": self.customer_phone,
            "note": self.note or DEFAULT_NOTE,
        }
