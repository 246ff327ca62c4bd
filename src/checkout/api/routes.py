"""FastAPI routes for the Checkout context.

Lifecycle outcomes, failures included, come back as ``200`` with the state as
data; only an illegal request (``ValidationError``) is answered with ``422``.
"""

import os

from fastapi import APIRouter, HTTPException, Request

from checkout.api.schemas import (
    ConfigureSandboxRequest,
    HealthResponse,
    LifecycleStateResponse,
    PaymentRequestSchema,
    SandboxConfigResponse,
)
from checkout.container import get_services
from checkout.lifecycle.polling import poll_until_settled

# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(tags=["checkout"])


@checkout_router.post("/checkout", response_model=LifecycleStateResponse)
async def submit_checkout(body: PaymentRequestSchema) -> LifecycleStateResponse:
    """Validate the request, create the order and run the checkout widget."""
    services = get_services()
    await services.ensure_widget()
    controller = services.new_checkout()
    try:
        state = await controller.submit(body.to_form())
    finally:
        controller.close()
    return LifecycleStateResponse.from_state(state)


@checkout_router.get("/payment/callback", response_model=LifecycleStateResponse)
async def payment_callback(request: Request) -> LifecycleStateResponse:
    """Landing point of the hosted checkout page; verifies ``?order_id=``."""
    controller = get_services().from_callback(dict(request.query_params))
    try:
        state = await controller.resume()
    finally:
        controller.close()
    return LifecycleStateResponse.from_state(state)


@checkout_router.post("/orders/{order_id}/verify", response_model=LifecycleStateResponse)
async def verify_order(order_id: str, poll: bool = False) -> LifecycleStateResponse:
    """Re-verify an order, optionally polling while it is still pending."""
    services = get_services()
    controller = services.from_callback({"order_id": order_id})
    try:
        state = await controller.resume()
        if poll:
            state = await poll_until_settled(
                controller,
                attempts=services.settings.poll_attempts,
                interval=services.settings.poll_interval_seconds,
                backoff=services.settings.poll_backoff,
            )
    finally:
        controller.close()
    return LifecycleStateResponse.from_state(state)


@checkout_router.post("/checkout/sandbox/configure", response_model=SandboxConfigResponse)
async def configure_sandbox(body: ConfigureSandboxRequest) -> SandboxConfigResponse:
    """Configure the fake backend's checkout behaviour (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Sandbox configuration is disabled in production")

    services = get_services()
    await services.ensure_widget()
    widget = services.widget_handle.widget
    if services.settings.backend != "fake" or widget is None:
        raise HTTPException(status_code=400, detail="Sandbox configuration requires the fake backend")

    widget.configure(should_succeed=body.should_succeed, failure_message=body.failure_message or "Payment failed")
    widget.settle_status = body.settle_status

    return SandboxConfigResponse(
        backend=services.settings.backend,
        should_succeed=widget.should_succeed,
        failure_message=widget.failure_message,
        settle_status=widget.settle_status,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@checkout_router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness plus checkout widget readiness."""
    services = get_services()
    await services.ensure_widget()
    return HealthResponse(
        status="ok",
        backend=services.settings.backend,
        checkout_widget="ready" if services.widget_handle.is_ready else "not_initialized",
    )
