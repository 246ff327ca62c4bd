"""Configurable fake checkout widget for development and testing.

Behaves like the processor's sandbox: an inline (modal) checkout resolves
with a result, a ``_self`` checkout hands back the hosted-page URL. When given
a ``FakeOrderLedger`` and a ``settle_status``, a successful checkout also
settles the backing order the way the processor would server-side.
"""

import asyncio
from urllib.parse import urlencode

from checkout.services.fake_adapter import FakeOrderLedger
from checkout.widget.port import CheckoutOptions, CheckoutResult, CheckoutWidget, RedirectTarget

FAKE_CHECKOUT_PAGE = "https://checkout.fake.test/pay"


class FakeCheckoutWidget(CheckoutWidget):
    def __init__(self, ledger: FakeOrderLedger | None = None, settle_status: str | None = None) -> None:
        self.ledger = ledger
        self.settle_status = settle_status
        self.should_succeed: bool = True
        self.failure_message: str | None = "Payment failed"
        self.calls: list[CheckoutOptions] = []
        self._gate: asyncio.Event | None = None

    def configure(self, should_succeed: bool = True, failure_message: str | None = "Payment failed") -> None:
        self.should_succeed = should_succeed
        self.failure_message = failure_message

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    def _settle(self, session_id: str) -> None:
        if self.ledger is None or self.settle_status is None:
            return
        for order_id, payload in self.ledger.orders.items():
            if payload.get("payment_session_id") == session_id:
                self.ledger.set_status(order_id, self.settle_status)
                payment_status = "SUCCESS" if self.settle_status == "PAID" else "PENDING"
                self.ledger.add_payment(order_id, status=payment_status)
                return

    async def checkout(self, options: CheckoutOptions) -> CheckoutResult:
        self.calls.append(options)
        if self._gate is not None:
            await self._gate.wait()

        if not self.should_succeed:
            return CheckoutResult(error=True, error_message=self.failure_message)

        self._settle(options.payment_session_id)

        if options.redirect_target is RedirectTarget.SELF:
            query = {"payment_session_id": options.payment_session_id}
            if options.return_url:
                query["return_url"] = options.return_url
            return CheckoutResult(redirect_url=f"{FAKE_CHECKOUT_PAGE}?{urlencode(query)}")
        return CheckoutResult()
