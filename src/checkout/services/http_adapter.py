"""httpx adapters for the order and verification services (JSON over HTTPS)."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from protean.exceptions import ValidationError

from checkout.lifecycle.errors import VerificationError
from checkout.order.order import Order, PaymentAttemptRecord, parse_payment_list
from checkout.request.payment_request import PaymentRequest
from checkout.services.port import CreateOrderResult, OrderService, VerificationService

logger = structlog.get_logger(__name__)

COMMON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class _HttpClientMixin:
    def __init__(self, base_url: str, *, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=COMMON_HEADERS)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class HttpOrderService(_HttpClientMixin, OrderService):
    """``POST {base_url}/create-order``.

    Two response shapes are in use: the order nested under ``"order"``, or its
    fields flattened next to ``"success"``. The failure text may come as
    ``"message"`` or ``"error"``.
    """

    async def create_order(self, request: PaymentRequest) -> CreateOrderResult:
        url = f"{self.base_url}/create-order"
        try:
            response = await self._client.post(url, json=request.to_payload(), headers=COMMON_HEADERS)
        except httpx.HTTPError as exc:
            logger.warning("Create order request failed", url=url, error=str(exc))
            return CreateOrderResult(success=False)

        body = _json_or_none(response)
        body = body if isinstance(body, Mapping) else {}
        message = body.get("message") or body.get("error")
        message = str(message) if message else None

        if response.is_error or not body.get("success"):
            logger.warning(
                "Order service rejected create order",
                status_code=response.status_code,
                message=message,
            )
            return CreateOrderResult(success=False, message=message)

        order_payload = body.get("order") if isinstance(body.get("order"), Mapping) else body
        try:
            order = Order.from_payload(order_payload)
        except ValidationError as exc:
            logger.error("Order service returned an unusable order", errors=exc.messages)
            return CreateOrderResult(success=True, order=None, message=message)

        return CreateOrderResult(success=True, order=order, message=message)


class HttpVerificationService(_HttpClientMixin, VerificationService):
    """``GET {base_url}/order/{id}`` and ``GET {base_url}/payment/{id}``."""

    async def _get_json(self, path: str, order_id: str) -> Any:
        url = f"{self.base_url}/{path}/{quote(order_id, safe='')}"
        try:
            response = await self._client.get(url, headers=COMMON_HEADERS)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Verification request failed", url=url, error=str(exc))
            raise VerificationError(detail=str(exc)) from exc

        body = _json_or_none(response)
        if body is None:
            raise VerificationError(detail=f"Non-JSON response from {url}")
        return body

    async def fetch_order(self, order_id: str) -> Order:
        body = await self._get_json("order", order_id)
        if not isinstance(body, Mapping):
            raise VerificationError(detail="Malformed order payload")
        try:
            return Order.from_payload(body)
        except ValidationError as exc:
            raise VerificationError(detail=f"Malformed order payload: {exc.messages}") from exc

    async def fetch_payments(self, order_id: str) -> tuple[PaymentAttemptRecord, ...]:
        body = await self._get_json("payment", order_id)
        try:
            return parse_payment_list(body)
        except (TypeError, ValidationError) as exc:
            raise VerificationError(detail=f"Malformed payment list: {exc}") from exc
