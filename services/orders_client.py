import json
from decimal import Decimal

from pydantic import ValidationError

from core.config import TOKEN_COOKIE, settings
from core.errors import UpstreamMalformedResponse, UpstreamOrderError
from core.http import http_client
from core.logging import logger
from schemas.order import OrderEnvelope, OrderOut


def infer_protocol(host: str) -> str:
    if settings.is_production and "localhost" not in host:
        return "https"
    return "http"


def base_url(host: str) -> str:
    return f"{infer_protocol(host)}://{host}"


async def fetch_order(host: str, order_id: str, token: str) -> OrderOut:
    """Fetch an order from the order endpoint on ``host``, forwarding the session cookie."""
    url = f"{base_url(host)}/api/orders/{order_id}"
    logger.info("order_fetch url=%s", url)

    async with http_client() as client:
        resp = await client.get(url, headers={"Cookie": f"{TOKEN_COOKIE}={token}"})
    content_type = resp.headers.get("content-type", "")
    body = resp.text

    # Body must be JSON before the status is even considered
    if "application/json" not in content_type:
        logger.error("order_fetch_unexpected_content_type content_type=%s body=%s", content_type, body[:500])
        raise UpstreamMalformedResponse(f"Expected JSON but received {content_type} from /api/orders/{order_id}")
    try:
        data = json.loads(body, parse_float=Decimal)
    except ValueError as exc:
        logger.error("order_fetch_invalid_json body=%s", body[:500])
        raise UpstreamMalformedResponse(f"Invalid JSON response from /api/orders/{order_id}: {body[:500]}") from exc

    if not resp.is_success:
        logger.error("order_fetch_failed status=%s reason=%s body=%s", resp.status_code, resp.reason_phrase, data)
        message = data.get("error") if isinstance(data, dict) else None
        raise UpstreamOrderError(resp.status_code, message or "Order not found")

    try:
        return OrderEnvelope.model_validate(data).order
    except ValidationError as exc:
        raise UpstreamMalformedResponse(f"Unexpected order payload from /api/orders/{order_id}: {exc}") from exc
