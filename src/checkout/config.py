"""Runtime settings for the checkout context.

Read once from the environment by the composition roots (the FastAPI app and
the CLI). The lifecycle core never reads the environment itself; it receives
its collaborators already built.
"""

import os
from dataclasses import dataclass

DEFAULT_API_BASE_URL = "http://localhost:5000/api"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CheckoutSettings:
    backend: str = "fake"  # "http" talks to the real order/verification services
    order_service_url: str = DEFAULT_API_BASE_URL
    verification_service_url: str = DEFAULT_API_BASE_URL
    return_url: str | None = None
    redirect_target: str = "_modal"
    checkout_page_url: str | None = None
    currency: str = "INR"
    require_email: bool = True
    http_timeout_seconds: float = 30.0
    poll_attempts: int = 5
    poll_interval_seconds: float = 2.0
    poll_backoff: float = 1.5

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        env = (os.getenv("PROTEAN_ENV") or "development").lower()
        default_backend = "http" if env == "production" else "fake"

        return cls(
            backend=os.getenv("CHECKOUT_BACKEND", default_backend).lower(),
            order_service_url=os.getenv("ORDER_SERVICE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            verification_service_url=os.getenv("VERIFICATION_SERVICE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            return_url=os.getenv("CHECKOUT_RETURN_URL") or None,
            redirect_target=os.getenv("CHECKOUT_REDIRECT_TARGET", "_modal"),
            checkout_page_url=os.getenv("CHECKOUT_PAGE_URL") or None,
            currency=os.getenv("CHECKOUT_CURRENCY", "INR").upper(),
            require_email=_env_bool("CHECKOUT_REQUIRE_EMAIL", True),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
            poll_attempts=int(os.getenv("POLL_ATTEMPTS", "5")),
            poll_interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "2")),
            poll_backoff=float(os.getenv("POLL_BACKOFF", "1.5")),
        )
