"""Checkout bounded context: payment lifecycle orchestration.

Drives a single payment from order creation, through the processor's
checkout widget (inline modal or hosted-page redirect), to reconciliation
against the backend order ledger, which is the authoritative outcome.
"""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

checkout = Domain(name="checkout")
