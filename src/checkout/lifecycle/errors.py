"""Failures the payment lifecycle converts into the ``Error`` state.

Boundary validation is not listed here: it raises Protean's
``ValidationError`` and never leaves ``Idle``.
"""

ORDER_CREATION_FALLBACK = "Failed to create order"
CHECKOUT_FALLBACK = "Payment failed"
WIDGET_NOT_INITIALIZED = "Payment system not initialized. Please refresh the page and try again."
CHECKOUT_IN_PROGRESS = "A checkout is already in progress"
INVALID_CALLBACK = "Invalid payment callback - Order ID missing"
VERIFICATION_FAILED = "Failed to verify payment status"
MISSING_SESSION = "No payment session ID received from server"


class CheckoutFlowError(Exception):
    """Base class; ``message`` is safe to show to the customer."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class OrderCreationError(CheckoutFlowError):
    """The order service refused or failed to create the order."""

    default_message = ORDER_CREATION_FALLBACK


class CheckoutError(CheckoutFlowError):
    """The checkout widget reported an error, or could not be used."""

    default_message = CHECKOUT_FALLBACK


class CallbackError(CheckoutFlowError):
    """The redirect callback did not carry a usable order identifier."""

    default_message = INVALID_CALLBACK


class VerificationError(CheckoutFlowError):
    """The order or its payment list could not be fetched."""

    default_message = VERIFICATION_FAILED


class ProtocolViolation(CheckoutFlowError):
    """The backend broke its contract, e.g. a created order without a session token."""

    default_message = MISSING_SESSION
