"""Hosted checkout page adapter.

For deployments that cannot embed the processor's modal: every checkout
hands the browser off to the processor-hosted page, whatever target was
requested. The outcome arrives through the callback URL.
"""

from urllib.parse import urlencode

from checkout.widget.port import CheckoutOptions, CheckoutResult, CheckoutWidget


class HostedCheckoutWidget(CheckoutWidget):
    def __init__(self, checkout_page_url: str) -> None:
        self.checkout_page_url = checkout_page_url.rstrip("?")

    async def checkout(self, options: CheckoutOptions) -> CheckoutResult:
        query = {"payment_session_id": options.payment_session_id}
        if options.return_url:
            query["return_url"] = options.return_url
        return CheckoutResult(redirect_url=f"{self.checkout_page_url}?{urlencode(query)}")
