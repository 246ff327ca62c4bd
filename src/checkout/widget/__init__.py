from checkout.widget.handle import CheckoutWidgetHandle
from checkout.widget.port import CheckoutOptions, CheckoutResult, CheckoutWidget, RedirectTarget

__all__ = [
    "CheckoutOptions",
    "CheckoutResult",
    "CheckoutWidget",
    "CheckoutWidgetHandle",
    "RedirectTarget",
]
