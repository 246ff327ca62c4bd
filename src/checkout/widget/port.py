"""Checkout widget port.

The processor's checkout UI is a black box. It either completes inline (a
modal that resolves with a result) or hands the browser off to a hosted page
that later returns to ``return_url`` with ``order_id`` in the query string.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class RedirectTarget(Enum):
    MODAL = "_modal"
    SELF = "_self"


@dataclass(frozen=True)
class CheckoutOptions:
    payment_session_id: str
    redirect_target: RedirectTarget = RedirectTarget.MODAL
    return_url: str | None = None


@dataclass(frozen=True)
class CheckoutResult:
    """What the widget reported.

    ``redirect_url`` is set only when the browser must leave for a hosted
    page; the outcome then arrives via the callback.
    """

    error: bool = False
    error_message: str | None = None
    redirect_url: str | None = None

    @property
    def navigated_away(self) -> bool:
        return self.redirect_url is not None


class CheckoutWidget(ABC):
    @abstractmethod
    async def checkout(self, options: CheckoutOptions) -> CheckoutResult:
        """Run the processor checkout for one payment session."""
        ...
