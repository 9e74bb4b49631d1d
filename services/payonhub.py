"""PayOnHub gateway client: builds PIX transaction payloads and submits them."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable

import httpx

from core.config import settings
from core.errors import ConfigurationMissing, GatewayError, UpstreamMalformedResponse
from core.http import http_client
from core.logging import logger
from schemas.order import OrderItemOut


TRANSACTIONS_PATH = "/v1/transactions"


def to_cents(value: float | int | str | Decimal) -> int:
    """Convert a currency amount to integer minor units, rounding half up."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_pix_payload(
    order_id: str,
    total: Decimal,
    items: Iterable[OrderItemOut],
    customer: Dict[str, str],
    postback_url: str,
    client_ip: str,
) -> Dict[str, Any]:
    return {
        "amount": to_cents(total),
        "paymentMethod": "pix",
        "referenceId": order_id,
        "currency": "BRL",
        "description": f"Payment for order #{order_id}",
        "items": [
            {
                "name": item.name,
                "title": item.name,
                "quantity": item.quantity,
                "unitPrice": to_cents(item.price),
                "description": item.name,
                "tangible": True,
            }
            for item in items
        ],
        "customer": {"name": customer["name"], "email": customer["email"]},
        "pix": {"expiration": settings.PIX_EXPIRATION_SECONDS},
        "postbackUrl": postback_url,
        "externalRef": order_id,
        "ip": client_ip,
    }


def _auth() -> httpx.BasicAuth:
    public_key = settings.PAYONHUB_PUBLIC_KEY
    secret_key = settings.PAYONHUB_SECRET_KEY
    if not public_key or not secret_key:
        raise ConfigurationMissing("PayOnHub credentials are missing")
    return httpx.BasicAuth(public_key, secret_key)


async def create_pix_transaction(payload: Dict[str, Any]) -> Dict[str, Any]:
    """POST the payload and return the parsed gateway body.

    Raises ``GatewayError`` with the gateway's own status on non-2xx answers and
    ``UpstreamMalformedResponse`` when the body is not JSON.
    """
    auth = _auth()
    url = f"{settings.PAYONHUB_BASE_URL.rstrip('/')}{TRANSACTIONS_PATH}"
    logger.info(
        "payonhub_request url=%s amount=%s items=%s",
        url,
        payload.get("amount"),
        len(payload.get("items", [])),
    )

    async with http_client() as client:
        resp = await client.post(url, json=payload, auth=auth, headers={"Accept": "application/json"})
    try:
        data = resp.json()
    except ValueError as exc:
        logger.error("payonhub_invalid_body status=%s body=%s", resp.status_code, resp.text[:500])
        raise UpstreamMalformedResponse(f"Invalid JSON response from PayOnHub: {resp.text[:500]}") from exc

    if not resp.is_success:
        logger.error("payonhub_failed status=%s reason=%s body=%s", resp.status_code, resp.reason_phrase, data)
        raise GatewayError(resp.status_code, data)

    logger.info("payonhub_response status=%s transaction_id=%s", resp.status_code, _get(data, "id"))
    return data


def _get(data: Any, key: str) -> Any:
    return data.get(key) if isinstance(data, dict) else None


def extract_qrcode(data: Any) -> str | None:
    pix = _get(data, "pix")
    return _get(pix, "qrcode")
