"""PIX payment initiation.

Resolves the order through the order endpoint (forwarding the caller's
session cookie), loads the customer, and asks PayOnHub for a PIX charge.
Every step runs strictly in sequence; nothing here is persisted.

The order endpoint is served by this same process, so the handler must not hold
a worker thread while it waits on it. Only the database lookup runs in the
thread pool.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import InternalFlowError, PaymentFlowError, UserNotFound
from core.logging import logger, order_id_ctx
from models.user import User
from routes.auth import require_token
from schemas.payment import ErrorResponse, PixPaymentResponse
from services import orders_client, payonhub

router = APIRouter(prefix="/api/pix-payment", tags=["payments"])

DEFAULT_HOST = "localhost:8000"
WEBHOOK_PATH = "/api/webhooks/payonhub"


def user_key(user_id: Any) -> Optional[int]:
    """Primary key for ``user_id``, or None when it cannot name a user."""
    if isinstance(user_id, bool):
        return None
    if isinstance(user_id, int):
        return user_id
    if isinstance(user_id, str) and user_id.strip().isdecimal():
        return int(user_id)
    return None


def find_customer(db: Session, user_id: Any) -> Optional[User]:
    key = user_key(user_id)
    if key is None:
        return None
    return db.get(User, key)


@router.get(
    "/{order_id}",
    response_model=PixPaymentResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_pix_payment(
    order_id: str,
    request: Request,
    token: str = Depends(require_token),
    x_forwarded_for: Optional[str] = Header(default=None, alias="x-forwarded-for"),
    db: Session = Depends(get_db),
):
    ctx_token = order_id_ctx.set(order_id)
    try:
        host = request.headers.get("host") or DEFAULT_HOST
        order = await orders_client.fetch_order(host, order_id, token)

        user = await run_in_threadpool(find_customer, db, order.user_id)
        if not user:
            raise UserNotFound(f"User not found for userId: {order.user_id}")

        payload = payonhub.build_pix_payload(
            order_id=order_id,
            total=order.total,
            items=order.items,
            customer={"name": user.name, "email": user.email},
            postback_url=f"{orders_client.base_url(host)}{WEBHOOK_PATH}",
            client_ip=x_forwarded_for or "unknown",
        )
        pix_data = await payonhub.create_pix_transaction(payload)
        logger.info("pix_payment_created amount_cents=%s", payload["amount"])
        return PixPaymentResponse(pix_code=payonhub.extract_qrcode(pix_data), amount=float(order.total))
    except PaymentFlowError:
        raise
    except Exception as exc:
        logger.exception("pix_payment_error order_id=%s", order_id)
        raise InternalFlowError(str(exc) or exc.__class__.__name__) from exc
    finally:
        order_id_ctx.reset(ctx_token)
