"""What each lifecycle state looks like to the customer.

Pure mapping from ``LifecycleState`` to the title, the follow-up actions and
a flat order view. Shared by the HTTP API and the operator CLI.
"""

from typing import Any

from checkout.lifecycle.state import LifecycleState, UIStatus
from checkout.order.order import Order, PaymentAttemptRecord

TITLES = {
    UIStatus.IDLE: "Make a Payment",
    UIStatus.CREATING_ORDER: "Creating Order...",
    UIStatus.AWAITING_CHECKOUT: "Complete Your Payment",
    UIStatus.VERIFYING: "Verifying Payment...",
    UIStatus.SUCCEEDED: "Payment Successful!",
    UIStatus.FAILED: "Payment Failed",
    UIStatus.PENDING: "Payment Pending",
    UIStatus.ERROR: "Error",
}

ACTIONS = {
    UIStatus.IDLE: (),
    UIStatus.CREATING_ORDER: (),
    UIStatus.AWAITING_CHECKOUT: (),
    UIStatus.VERIFYING: (),
    UIStatus.SUCCEEDED: ("make_another_payment",),
    UIStatus.FAILED: ("try_again",),
    UIStatus.PENDING: ("refresh_status",),
    UIStatus.ERROR: ("go_home", "contact_support"),
}


def title_for(state: LifecycleState) -> str:
    return TITLES[state.ui_status]


def actions_for(state: LifecycleState) -> tuple[str, ...]:
    return ACTIONS[state.ui_status]


def order_view(order: Order | None) -> dict[str, Any] | None:
    if order is None:
        return None

    customer = order.customer_details
    return {
        "order_id": order.order_id,
        "amount": order.display_amount,
        "currency": order.order_currency,
        "status": order.order_status,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "customer_id": customer.customer_id if customer else None,
        "customer_name": customer.customer_name if customer else None,
        "customer_phone": customer.customer_phone if customer else None,
    }


def attempt_view(attempt: PaymentAttemptRecord) -> dict[str, Any]:
    return {
        "payment_id": attempt.payment_id,
        "amount": attempt.display_amount,
        "method": attempt.method,
        "status": attempt.status,
        "gateway": attempt.gateway,
        "time": attempt.timestamp.isoformat() if attempt.timestamp else None,
    }


def render(state: LifecycleState) -> dict[str, Any]:
    """Flatten a state into the JSON-ready shape the API and CLI emit."""
    return {
        "ui_status": state.ui_status.value,
        "title": title_for(state),
        "message": state.message,
        "order_id": state.order_id,
        "order": order_view(state.order),
        "payments": [attempt_view(attempt) for attempt in state.attempts],
        "actions": list(actions_for(state)),
        "error_kind": state.error_kind,
        "error_detail": state.error_detail,
        "redirect_url": state.redirect_url,
    }
