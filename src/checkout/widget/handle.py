"""Owned handle around the single checkout widget instance.

The widget is loaded once and shared by every controller in the process.
The handle makes its lifecycle explicit: it starts uninitialised, becomes
ready after ``initialize``, and admits one ``checkout`` at a time.
"""

from collections.abc import Awaitable, Callable

import structlog

from checkout.lifecycle.errors import CHECKOUT_IN_PROGRESS, WIDGET_NOT_INITIALIZED, CheckoutError
from checkout.widget.port import CheckoutOptions, CheckoutResult, CheckoutWidget

logger = structlog.get_logger(__name__)


class CheckoutWidgetHandle:
    def __init__(self, widget: CheckoutWidget | None = None) -> None:
        self._widget = widget
        self._checkout_in_flight = False

    @property
    def is_ready(self) -> bool:
        return self._widget is not None

    @property
    def is_busy(self) -> bool:
        return self._checkout_in_flight

    @property
    def widget(self) -> CheckoutWidget | None:
        return self._widget

    async def initialize(self, loader: Callable[[], Awaitable[CheckoutWidget]]) -> bool:
        """Load the widget; on failure stay uninitialised and report ``False``."""
        if self._widget is not None:
            return True
        try:
            self._widget = await loader()
        except Exception as exc:
            logger.error("Failed to initialize checkout widget", error=str(exc))
            return False

        logger.info("Checkout widget initialized", widget=type(self._widget).__name__)
        return True

    async def checkout(self, options: CheckoutOptions) -> CheckoutResult:
        if self._widget is None:
            raise CheckoutError(WIDGET_NOT_INITIALIZED)
        if self._checkout_in_flight:
            raise CheckoutError(CHECKOUT_IN_PROGRESS)

        self._checkout_in_flight = True
        try:
            return await self._widget.checkout(options)
        finally:
            self._checkout_in_flight = False
