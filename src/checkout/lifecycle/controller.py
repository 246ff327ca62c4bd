"""PaymentLifecycleController: drives one payment from submission to outcome.

Two entry points share one machine:

- ``start_checkout`` builds a controller at ``Idle``. ``submit`` validates the
  request, creates the order, runs the checkout widget and, for an inline
  completion, verifies the order against the backend.
- ``resume_from_callback`` builds a controller straight into ``Verifying``
  from the redirect callback URL; ``resume`` then verifies.

Both paths finish in the same verification step and the same reconciliation,
so a given backend snapshot always yields the same outcome.

All collaborator calls are awaited. A controller runs one step at a time;
calls made while a step is in flight are ignored. ``close`` detaches the
controller: anything still in flight is discarded when it lands.
"""

import asyncio
import re
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import parse_qs, urlsplit

import structlog
from protean.exceptions import ValidationError

from checkout.lifecycle.errors import (
    CHECKOUT_FALLBACK,
    MISSING_SESSION,
    ORDER_CREATION_FALLBACK,
    WIDGET_NOT_INITIALIZED,
    CallbackError,
    CheckoutError,
    CheckoutFlowError,
    OrderCreationError,
    ProtocolViolation,
    VerificationError,
)
from checkout.lifecycle.reconciliation import describe
from checkout.lifecycle.state import LifecycleState, UIStatus, assert_can_transition
from checkout.order.order import Order, PaymentAttemptRecord
from checkout.request.payment_request import PaymentRequest
from checkout.request.validation import build_payment_request, field_error
from checkout.services.port import OrderService, VerificationService
from checkout.utils.logging import add_context, clear_context
from checkout.widget.handle import CheckoutWidgetHandle
from checkout.widget.port import CheckoutOptions, RedirectTarget

logger = structlog.get_logger(__name__)

ORDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:\-]{1,100}$")

CREATING_ORDER_MESSAGE = "Creating your order..."
AWAITING_CHECKOUT_MESSAGE = "Complete the payment in the checkout window"
VERIFYING_MESSAGE = "Please wait while we confirm your payment"

StateListener = Callable[[LifecycleState], None]


def parse_callback(callback: str | Mapping[str, Any]) -> str:
    """Extract ``order_id`` from a redirect callback.

    Accepts a full URL, a bare query string, or an already-parsed mapping of
    query parameters. Raises ``CallbackError`` when the id is missing, blank
    or malformed.
    """
    if isinstance(callback, Mapping):
        raw = callback.get("order_id")
        if isinstance(raw, (list, tuple)):
            raw = raw[0] if raw else None
    else:
        text = str(callback)
        query = urlsplit(text).query if ("?" in text or "://" in text) else text
        values = parse_qs(query, keep_blank_values=True).get("order_id") or []
        raw = values[0] if values else None

    order_id = str(raw).strip() if raw is not None else ""
    if not order_id:
        raise CallbackError(detail="order_id query parameter is missing")
    if not ORDER_ID_PATTERN.match(order_id):
        raise CallbackError(detail=f"Malformed order_id {order_id!r}")
    return order_id


class PaymentLifecycleController:
    def __init__(
        self,
        *,
        verification_service: VerificationService,
        order_service: OrderService | None = None,
        widget: CheckoutWidgetHandle | None = None,
        return_url: str | None = None,
        redirect_target: RedirectTarget | str = RedirectTarget.MODAL,
        require_email: bool = True,
        currency: str | None = None,
    ) -> None:
        self._verification = verification_service
        self._order_service = order_service
        self._widget = widget
        self.return_url = return_url
        self.redirect_target = RedirectTarget(redirect_target)
        self.require_email = require_email
        self.currency = currency
        self.request: PaymentRequest | None = None

        self._state = LifecycleState()
        self._listeners: list[StateListener] = []
        self._in_flight = False
        self._closed = False
        self._generation = 0

    # -------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------
    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def order_id(self) -> str | None:
        return self._state.order_id

    @property
    def is_busy(self) -> bool:
        return self._in_flight

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every state this controller applies."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def close(self) -> None:
        """Detach from the presentation; late results will be discarded."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        logger.debug("Payment lifecycle closed", order_id=self.order_id, ui_status=self._state.ui_status.value)

    # -------------------------------------------------------------------
    # State application
    # -------------------------------------------------------------------
    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _publish(self, state: LifecycleState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _apply(self, generation: int, ui_status: UIStatus, **fields) -> bool:
        """Transition to ``ui_status`` unless the step that produced it is stale."""
        if not self._is_current(generation):
            logger.info(
                "Discarding stale lifecycle update",
                order_id=self.order_id,
                discarded_status=ui_status.value,
            )
            return False

        current = self._state.ui_status
        assert_can_transition(current, ui_status)

        changes = {"error_kind": None, "error_detail": None, "redirect_url": None}
        changes.update(fields)
        self._publish(self._state.evolve(ui_status=ui_status, **changes))

        logger.info(
            "Payment lifecycle transition",
            from_status=current.value,
            to_status=ui_status.value,
            order_id=self.order_id,
        )
        return True

    def _fail(self, generation: int, exc: CheckoutFlowError) -> None:
        if self._is_current(generation):
            logger.warning(
                "Payment lifecycle failed",
                order_id=self.order_id,
                error_kind=type(exc).__name__,
                error=exc.message,
                detail=exc.detail,
            )
        self._apply(
            generation,
            UIStatus.ERROR,
            message=exc.message,
            error_kind=type(exc).__name__,
            error_detail=exc.detail,
        )

    def _begin(self, action: str) -> int | None:
        if self._closed:
            logger.info("Ignoring action on closed lifecycle", action=action, order_id=self.order_id)
            return None
        if self._in_flight:
            logger.info("Ignoring action while a step is in flight", action=action, order_id=self.order_id)
            return None
        self._in_flight = True
        return self._generation

    def _end(self) -> None:
        self._in_flight = False

    # -------------------------------------------------------------------
    # Inline entry point
    # -------------------------------------------------------------------
    async def submit(self, data: Mapping[str, Any] | PaymentRequest) -> LifecycleState:
        """Validate, create the order, run checkout and, when inline, verify."""
        generation = self._begin("submit")
        if generation is None:
            return self._state

        try:
            if self._state.ui_status is not UIStatus.IDLE:
                raise ValidationError(
                    {"status": [f"Cannot submit from {self._state.ui_status.value}; start a new checkout"]}
                )

            try:
                request = build_payment_request(data, require_email=self.require_email, currency=self.currency)
            except ValidationError as exc:
                field, message = field_error(exc)
                logger.info("Payment request rejected", field=field)
                self._apply(generation, UIStatus.IDLE, message=message, error_kind="ValidationError", error_detail=field)
                return self._state

            self.request = request

            if self._widget is None or not self._widget.is_ready:
                raise CheckoutError(WIDGET_NOT_INITIALIZED)
            if self._order_service is None:
                raise OrderCreationError(detail="No order service configured")

            self._apply(generation, UIStatus.CREATING_ORDER, message=CREATING_ORDER_MESSAGE)
            order = await self._create_order(request)

            if not self._apply(
                generation,
                UIStatus.AWAITING_CHECKOUT,
                message=AWAITING_CHECKOUT_MESSAGE,
                order=order,
                order_id=order.order_id,
            ):
                return self._state

            result = await self._widget.checkout(
                CheckoutOptions(
                    payment_session_id=order.checkout_session_token,
                    redirect_target=self.redirect_target,
                    return_url=self.return_url,
                )
            )
            if not self._is_current(generation):
                logger.info("Discarding stale checkout result", order_id=order.order_id)
                return self._state

            if result.error:
                raise CheckoutError(result.error_message or CHECKOUT_FALLBACK, detail="Reported by checkout widget")

            if result.navigated_away:
                # The callback controller takes over from here.
                self._publish(self._state.evolve(redirect_url=result.redirect_url))
                logger.info("Checkout handed off to hosted page", order_id=order.order_id)
                return self._state

            return await self._verify(order.order_id, generation)
        except CheckoutFlowError as exc:
            self._fail(generation, exc)
            return self._state
        finally:
            self._end()

    async def _create_order(self, request: PaymentRequest) -> Order:
        result = await self._order_service.create_order(request)
        if not result.success:
            raise OrderCreationError(result.message or ORDER_CREATION_FALLBACK)

        order = result.order
        if order is None or not order.checkout_session_token:
            raise ProtocolViolation(
                MISSING_SESSION,
                detail=f"Order {order.order_id if order else '<unparseable>'} has no checkout session token",
            )

        logger.info("Order created", order_id=order.order_id, amount=order.display_amount)
        return order

    # -------------------------------------------------------------------
    # Redirect entry point
    # -------------------------------------------------------------------
    def _enter_from_callback(self, callback: str | Mapping[str, Any]) -> None:
        generation = self._generation
        try:
            order_id = parse_callback(callback)
        except CallbackError as exc:
            self._fail(generation, exc)
            return
        self._apply(generation, UIStatus.VERIFYING, message=VERIFYING_MESSAGE, order_id=order_id)

    async def resume(self) -> LifecycleState:
        """Run the verification a callback-built controller was re-hydrated for."""
        if self._state.ui_status is not UIStatus.VERIFYING:
            return self._state
        return await self.verify()

    # -------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------
    async def verify(self, order_id: str | None = None) -> LifecycleState:
        """Fetch backend truth for the order and reconcile it."""
        generation = self._begin("verify")
        if generation is None:
            return self._state

        try:
            bound = self._state.order_id
            if order_id and bound and order_id != bound:
                raise ValidationError({"order_id": [f"Lifecycle is bound to order {bound}"]})

            order_id = order_id or bound
            if not order_id:
                raise CallbackError(detail="No order to verify")
            return await self._verify(order_id, generation)
        except CheckoutFlowError as exc:
            self._fail(generation, exc)
            return self._state
        finally:
            self._end()

    async def retry(self) -> LifecycleState:
        """Re-verify a ``Pending`` payment from scratch."""
        if self._in_flight:
            logger.info("Ignoring retry while a step is in flight", order_id=self.order_id)
            return self._state
        if self._state.ui_status is not UIStatus.PENDING:
            raise ValidationError({"status": ["Payment can only be re-verified from Pending state"]})
        return await self.verify()

    async def _verify(self, order_id: str, generation: int) -> LifecycleState:
        if self._state.ui_status is not UIStatus.VERIFYING:
            if not self._apply(
                generation,
                UIStatus.VERIFYING,
                message=VERIFYING_MESSAGE,
                order=self._state.order,
                attempts=self._state.attempts,
                order_id=order_id,
            ):
                return self._state

        add_context(order_id=order_id)
        try:
            order, attempts = await self._fetch_snapshot(order_id)
        finally:
            clear_context("order_id")

        if order.order_id != order_id:
            raise VerificationError(detail=f"Fetched order {order.order_id} while verifying {order_id}")

        outcome = describe(order)
        fields = {}
        if outcome.ui_status is UIStatus.ERROR:
            fields = {"error_kind": ProtocolViolation.__name__, "error_detail": "Order snapshot has no order_status"}

        self._apply(
            generation,
            outcome.ui_status,
            message=outcome.message,
            order=order,
            attempts=attempts,
            order_id=order_id,
            **fields,
        )
        return self._state

    async def _fetch_snapshot(self, order_id: str) -> tuple[Order, tuple[PaymentAttemptRecord, ...]]:
        # Both reads are always attempted; either failing fails the snapshot.
        order, attempts = await asyncio.gather(
            self._verification.fetch_order(order_id),
            self._verification.fetch_payments(order_id),
            return_exceptions=True,
        )
        failures = [result for result in (order, attempts) if isinstance(result, BaseException)]
        for failure in failures:
            if not isinstance(failure, VerificationError):
                raise failure
        if failures:
            raise failures[0]
        return order, tuple(attempts)


def start_checkout(
    *,
    order_service: OrderService,
    verification_service: VerificationService,
    widget: CheckoutWidgetHandle,
    return_url: str | None = None,
    redirect_target: RedirectTarget | str = RedirectTarget.MODAL,
    require_email: bool = True,
    currency: str | None = None,
) -> PaymentLifecycleController:
    """A fresh controller at ``Idle``, ready for ``submit``."""
    return PaymentLifecycleController(
        order_service=order_service,
        verification_service=verification_service,
        widget=widget,
        return_url=return_url,
        redirect_target=redirect_target,
        require_email=require_email,
        currency=currency,
    )


def resume_from_callback(
    callback: str | Mapping[str, Any],
    *,
    verification_service: VerificationService,
) -> PaymentLifecycleController:
    """A controller re-hydrated from the redirect callback.

    It starts in ``Verifying`` for the callback's ``order_id``, or in
    ``Error`` when the callback carries none. Call ``resume`` to verify.
    """
    controller = PaymentLifecycleController(verification_service=verification_service)
    controller._enter_from_callback(callback)
    return controller
