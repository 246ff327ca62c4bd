"""Lifecycle state: the controller's own derived view of one payment.

State Machine:
    Idle → CreatingOrder → AwaitingCheckout → Verifying → Succeeded | Failed | Pending | Error
    Pending → Verifying (re-verify)
    Idle → Verifying (redirect callback re-hydration)

Succeeded, Failed and Error are terminal for an order; a new submission gets
a new controller.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError

from checkout.order.order import Order, PaymentAttemptRecord


class UIStatus(Enum):
    IDLE = "Idle"
    CREATING_ORDER = "CreatingOrder"
    AWAITING_CHECKOUT = "AwaitingCheckout"
    VERIFYING = "Verifying"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    PENDING = "Pending"
    ERROR = "Error"


_VALID_TRANSITIONS = {
    UIStatus.IDLE: {UIStatus.IDLE, UIStatus.CREATING_ORDER, UIStatus.VERIFYING, UIStatus.ERROR},
    UIStatus.CREATING_ORDER: {UIStatus.AWAITING_CHECKOUT, UIStatus.ERROR},
    UIStatus.AWAITING_CHECKOUT: {UIStatus.VERIFYING, UIStatus.ERROR},
    UIStatus.VERIFYING: {UIStatus.SUCCEEDED, UIStatus.FAILED, UIStatus.PENDING, UIStatus.ERROR},
    UIStatus.PENDING: {UIStatus.VERIFYING},
    UIStatus.SUCCEEDED: set(),  # Terminal
    UIStatus.FAILED: set(),  # Terminal
    UIStatus.ERROR: set(),  # Terminal
}

TERMINAL_STATUSES = frozenset({UIStatus.SUCCEEDED, UIStatus.FAILED, UIStatus.ERROR})
IN_FLIGHT_STATUSES = frozenset({UIStatus.CREATING_ORDER, UIStatus.AWAITING_CHECKOUT, UIStatus.VERIFYING})


def can_transition(current: UIStatus, target: UIStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


def assert_can_transition(current: UIStatus, target: UIStatus) -> None:
    if not can_transition(current, target):
        raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})


@dataclass(frozen=True)
class LifecycleState:
    ui_status: UIStatus = UIStatus.IDLE
    message: str = ""
    order: Order | None = None
    attempts: tuple[PaymentAttemptRecord, ...] = ()
    order_id: str | None = None
    error_kind: str | None = None
    error_detail: str | None = None
    redirect_url: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.ui_status in TERMINAL_STATUSES

    @property
    def latest_attempt(self) -> PaymentAttemptRecord | None:
        if not self.attempts:
            return None
        stamped = [a for a in self.attempts if a.timestamp is not None]
        if not stamped:
            return self.attempts[-1]
        return max(stamped, key=lambda a: a.timestamp)

    def evolve(self, **changes) -> "LifecycleState":
        return dataclasses.replace(self, **changes)
