"""Pydantic request/response schemas for the Checkout API.

Request fields are loose. The domain validator owns the rules and the
customer-facing messages, so a bad amount reaches it as form input.
"""

from typing import Any

from pydantic import BaseModel

from checkout.lifecycle.presentation import render
from checkout.lifecycle.state import LifecycleState


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class PaymentRequestSchema(BaseModel):
    amount: float | str | None = None
    currency: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | int | None = None
    note: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": 500,
                    "customer_name": "Asha Rao",
                    "customer_email": "asha@example.com",
                    "customer_phone": "9876543210",
                    "note": "Consultation fee",
                }
            ]
        }
    }

    def to_form(self) -> dict[str, Any]:
        form = self.model_dump(exclude_none=True)
        if "customer_phone" in form:
            form["customer_phone"] = str(form["customer_phone"])
        return form


class ConfigureSandboxRequest(BaseModel):
    should_succeed: bool = True
    failure_message: str | None = None
    settle_status: str | None = "PAID"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderView(BaseModel):
    order_id: str
    amount: str
    currency: str | None = None
    status: str | None = None
    created_at: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None


class PaymentAttemptView(BaseModel):
    payment_id: str | None = None
    amount: str
    method: str | None = None
    status: str | None = None
    gateway: str | None = None
    time: str | None = None


class LifecycleStateResponse(BaseModel):
    ui_status: str
    title: str
    message: str
    order_id: str | None = None
    order: OrderView | None = None
    payments: list[PaymentAttemptView] = []
    actions: list[str] = []
    error_kind: str | None = None
    error_detail: str | None = None
    redirect_url: str | None = None

    @classmethod
    def from_state(cls, state: LifecycleState) -> "LifecycleStateResponse":
        return cls.model_validate(render(state))


class SandboxConfigResponse(BaseModel):
    backend: str
    should_succeed: bool
    failure_message: str | None = None
    settle_status: str | None = None


class HealthResponse(BaseModel):
    status: str
    backend: str
    checkout_widget: str
