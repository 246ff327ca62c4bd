"""Backend service ports (abstract interfaces).

The order service creates orders; the verification service reads the
authoritative order and its payment attempts. Adapters: ``Http*`` for the
real backend, ``Fake*`` for development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from checkout.order.order import Order, PaymentAttemptRecord
from checkout.request.payment_request import PaymentRequest


@dataclass(frozen=True)
class CreateOrderResult:
    """Outcome of a create-order call.

    ``message`` is the service's own wording and is shown verbatim when present.
    """

    success: bool
    order: Order | None = None
    message: str | None = None


class OrderService(ABC):
    @abstractmethod
    async def create_order(self, request: PaymentRequest) -> CreateOrderResult:
        """Create a pending order and its checkout session.

        Transport failures are reported as ``success=False``, never raised.
        """
        ...


class VerificationService(ABC):
    """Reads backend truth. Both methods raise ``VerificationError`` on failure."""

    @abstractmethod
    async def fetch_order(self, order_id: str) -> Order: ...

    @abstractmethod
    async def fetch_payments(self, order_id: str) -> tuple[PaymentAttemptRecord, ...]: ...
