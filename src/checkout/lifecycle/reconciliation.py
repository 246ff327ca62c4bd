"""Status reconciliation: backend order status to UI status.

Pure and total. The backend's ``order_status`` is authoritative: once an
order snapshot exists, nothing the widget said and nothing in the payment
attempt list can change the outcome, so inline and redirect completions of
the same order always land on the same status.
"""

from dataclasses import dataclass

from checkout.lifecycle.errors import CHECKOUT_FALLBACK, VERIFICATION_FAILED
from checkout.lifecycle.state import UIStatus
from checkout.order.order import Order, OrderStatus, normalize_status

FAILED_ORDER_STATUSES = frozenset({OrderStatus.EXPIRED.value, OrderStatus.CANCELLED.value})

SUCCESS_MESSAGE = "Payment completed successfully!"
FAILED_MESSAGE = "Unfortunately, your payment could not be processed."
PENDING_MESSAGE = "Your payment is being processed. Please check back later."
UNKNOWN_STATUS_MESSAGE = "Unable to determine payment status. Please contact support."


@dataclass(frozen=True)
class Reconciliation:
    ui_status: UIStatus
    message: str


def reconcile(order_status: str | None, *, fetch_failed: bool = False) -> UIStatus:
    """Map the authoritative order status to a UI status."""
    if fetch_failed:
        return UIStatus.ERROR

    status = normalize_status(order_status)
    if status == OrderStatus.PAID.value:
        return UIStatus.SUCCEEDED
    if status in FAILED_ORDER_STATUSES:
        return UIStatus.FAILED
    if status is not None:
        return UIStatus.PENDING
    return UIStatus.ERROR


def describe(
    order: Order | None,
    *,
    fetch_failed: bool = False,
    widget_error: str | None = None,
) -> Reconciliation:
    """Reconcile an order snapshot and pair the outcome with its customer message.

    ``widget_error`` only supplies the message when there is no snapshot; it
    never changes the status.
    """
    order_status = order.order_status if order is not None else None
    ui_status = reconcile(order_status, fetch_failed=fetch_failed)

    if ui_status is UIStatus.SUCCEEDED:
        return Reconciliation(ui_status, SUCCESS_MESSAGE)
    if ui_status is UIStatus.FAILED:
        return Reconciliation(ui_status, FAILED_MESSAGE)
    if ui_status is UIStatus.PENDING:
        return Reconciliation(ui_status, PENDING_MESSAGE)

    if fetch_failed:
        message = VERIFICATION_FAILED
    elif order is None and widget_error is not None:
        message = widget_error or CHECKOUT_FALLBACK
    else:
        message = UNKNOWN_STATUS_MESSAGE
    return Reconciliation(ui_status, message)
