"""Re-verify a ``Pending`` payment on a bounded backoff schedule."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from checkout.lifecycle.controller import PaymentLifecycleController
from checkout.lifecycle.state import LifecycleState, UIStatus

logger = structlog.get_logger(__name__)


async def poll_until_settled(
    controller: PaymentLifecycleController,
    *,
    attempts: int = 5,
    interval: float = 2.0,
    backoff: float = 1.5,
    max_interval: float = 30.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> LifecycleState:
    """Retry verification while the controller is ``Pending``.

    Stops as soon as the payment settles, the controller is closed, or
    ``attempts`` re-verifications have been made. Returns the last state.
    """
    delay = interval
    for attempt in range(1, attempts + 1):
        if controller.is_closed or controller.state.ui_status is not UIStatus.PENDING:
            break

        await sleep(delay)
        if controller.is_closed:
            break

        logger.info("Re-verifying pending payment", order_id=controller.order_id, attempt=attempt)
        await controller.retry()
        delay = min(delay * backoff, max_interval)

    state = controller.state
    if state.ui_status is UIStatus.PENDING:
        logger.info("Payment still pending after polling", order_id=controller.order_id, attempts=attempts)
    return state
