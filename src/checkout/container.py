"""Builds the checkout collaborators from ``CheckoutSettings``.

``backend="fake"`` wires the in-memory ledger shared by the fake order
service, the fake verification service and the fake widget, so a checkout
started through the API can be verified end to end without a processor.
``backend="http"`` talks to the real services over HTTP; the widget is then
the hosted checkout page when ``checkout_page_url`` is set.

The widget handle starts uninitialised. ``ensure_widget`` loads it on first
use; a failed load leaves it uninitialised and is retried on the next call.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from checkout.config import CheckoutSettings
from checkout.lifecycle.controller import (
    PaymentLifecycleController,
    resume_from_callback,
    start_checkout,
)
from checkout.services.fake_adapter import FakeOrderLedger, FakeOrderService, FakeVerificationService
from checkout.services.http_adapter import HttpOrderService, HttpVerificationService
from checkout.services.port import OrderService, VerificationService
from checkout.widget.fake_adapter import FakeCheckoutWidget
from checkout.widget.handle import CheckoutWidgetHandle
from checkout.widget.hosted_adapter import HostedCheckoutWidget
from checkout.widget.port import CheckoutWidget

logger = structlog.get_logger(__name__)

WidgetLoader = Callable[[], Awaitable[CheckoutWidget]]


@dataclass
class CheckoutServices:
    order_service: OrderService
    verification_service: VerificationService
    widget_handle: CheckoutWidgetHandle
    settings: CheckoutSettings = field(default_factory=CheckoutSettings)
    ledger: FakeOrderLedger | None = None
    widget_loader: WidgetLoader | None = None

    async def ensure_widget(self) -> bool:
        """Initialise the widget handle if it is not ready yet."""
        if self.widget_handle.is_ready or self.widget_loader is None:
            return self.widget_handle.is_ready
        return await self.widget_handle.initialize(self.widget_loader)

    def new_checkout(self) -> PaymentLifecycleController:
        return start_checkout(
            order_service=self.order_service,
            verification_service=self.verification_service,
            widget=self.widget_handle,
            return_url=self.settings.return_url,
            redirect_target=self.settings.redirect_target,
            require_email=self.settings.require_email,
            currency=self.settings.currency,
        )

    def from_callback(self, callback) -> PaymentLifecycleController:
        return resume_from_callback(callback, verification_service=self.verification_service)

    async def aclose(self) -> None:
        for service in (self.order_service, self.verification_service):
            aclose = getattr(service, "aclose", None)
            if aclose is not None:
                await aclose()


def build_services(settings: CheckoutSettings | None = None) -> CheckoutServices:
    settings = settings or CheckoutSettings.from_env()

    if settings.backend == "http":
        order_service = HttpOrderService(settings.order_service_url, timeout=settings.http_timeout_seconds)
        verification_service = HttpVerificationService(
            settings.verification_service_url, timeout=settings.http_timeout_seconds
        )

        async def load_hosted_widget() -> CheckoutWidget:
            if not settings.checkout_page_url:
                raise ValueError("CHECKOUT_PAGE_URL is not configured")
            return HostedCheckoutWidget(settings.checkout_page_url)

        logger.info(
            "Checkout services configured",
            backend="http",
            order_service_url=settings.order_service_url,
            checkout_page_url=settings.checkout_page_url,
        )
        return CheckoutServices(
            order_service=order_service,
            verification_service=verification_service,
            widget_handle=CheckoutWidgetHandle(),
            settings=settings,
            widget_loader=load_hosted_widget,
        )

    if settings.backend != "fake":
        raise ValueError(f"Unknown checkout backend {settings.backend!r}; expected 'fake' or 'http'")

    ledger = FakeOrderLedger()

    async def load_fake_widget() -> CheckoutWidget:
        return FakeCheckoutWidget(ledger, settle_status="PAID")

    logger.info("Checkout services configured", backend="fake")
    return CheckoutServices(
        order_service=FakeOrderService(ledger),
        verification_service=FakeVerificationService(ledger),
        widget_handle=CheckoutWidgetHandle(),
        settings=settings,
        ledger=ledger,
        widget_loader=load_fake_widget,
    )


_current_services: CheckoutServices | None = None


def get_services() -> CheckoutServices:
    """Return the process-wide services, building them from the environment on first use."""
    global _current_services
    if _current_services is None:
        _current_services = build_services()
    return _current_services


def set_services(services: CheckoutServices) -> None:
    """Override the active services (useful for tests)."""
    global _current_services
    _current_services = services


def reset_services() -> None:
    global _current_services
    _current_services = None
