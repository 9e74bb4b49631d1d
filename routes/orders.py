from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import OrderNotFound
from models.order import Order
from models.user import User
from routes.auth import get_current_user

router = APIRouter(prefix="/api/orders", tags=["orders"])


def serialize_order(order: Order) -> dict:
    return {
        "id": order.id,
        "total": float(order.total),
        "userId": str(order.user_id),
        "status": order.status,
        "items": [
            {
                "productId": item.product_id,
                "quantity": item.quantity,
                "name": item.name,
                "price": float(item.unit_price),
            }
            for item in order.items
        ],
    }


@router.get("/{order_id}")
def get_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user.id).one_or_none()
    if not order:
        raise OrderNotFound()
    return {"order": serialize_order(order)}
