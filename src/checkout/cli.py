"""Checkout operator CLI.

Verifies orders against the configured backend and prints the rendered
lifecycle state as JSON.

Usage:
    python -m checkout.cli verify ORDER_ID [--poll]
    python -m checkout.cli callback "https://shop.example/payment/callback?order_id=ORDER_ID"

Exit status: 0 succeeded, 1 failed or error, 2 still pending.
"""

import argparse
import asyncio
import json
import sys

from checkout.config import CheckoutSettings
from checkout.container import CheckoutServices, build_services
from checkout.domain import checkout
from checkout.lifecycle.polling import poll_until_settled
from checkout.lifecycle.presentation import render
from checkout.lifecycle.state import LifecycleState, UIStatus

EXIT_CODES = {
    UIStatus.SUCCEEDED: 0,
    UIStatus.FAILED: 1,
    UIStatus.ERROR: 1,
}


async def run_verification(services: CheckoutServices, callback, poll: bool = False) -> LifecycleState:
    controller = services.from_callback(callback)
    try:
        state = await controller.resume()
        if poll:
            state = await poll_until_settled(
                controller,
                attempts=services.settings.poll_attempts,
                interval=services.settings.poll_interval_seconds,
                backoff=services.settings.poll_backoff,
            )
        return state
    finally:
        controller.close()
        await services.aclose()


def main(argv=None, services: CheckoutServices | None = None) -> int:
    parser = argparse.ArgumentParser(description="Checkout payment verification")
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify_parser = subparsers.add_parser("verify", help="Verify an order's payment status")
    verify_parser.add_argument("order_id", help="Order identifier")
    verify_parser.add_argument(
        "--poll",
        action="store_true",
        help="Keep re-verifying while the payment is pending",
    )

    callback_parser = subparsers.add_parser("callback", help="Verify the order named by a callback URL")
    callback_parser.add_argument("url", help="Callback URL or query string carrying order_id")

    args = parser.parse_args(argv)

    services = services or build_services(CheckoutSettings.from_env())

    with checkout.domain_context():
        if args.command == "verify":
            state = asyncio.run(run_verification(services, {"order_id": args.order_id}, poll=args.poll))
        else:
            state = asyncio.run(run_verification(services, args.url))

    print(json.dumps(render(state), indent=2))
    return EXIT_CODES.get(state.ui_status, 2)


if __name__ == "__main__":
    checkout.init()
    sys.exit(main())
