from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import require_roles
from core.db import get_db
from models.user import User, ROLE_DELIVERY
from schemas.order import TransitionResult
from services import order_lifecycle as lifecycle

router = APIRouter(prefix="/delivery", tags=["delivery"])

delivery_actor = require_roles(ROLE_DELIVERY)


@router.post("/orders/{order_id}/dispatch", response_model=TransitionResult)
def dispatch_order(order_id: str, current_user: User = Depends(delivery_actor), db: Session = Depends(get_db)):
    order = lifecycle.dispatch_order(db, order_id, current_user)
    return {"message": "Order is out for delivery", "order": order}


@router.post("/orders/{order_id}/delivered", response_model=TransitionResult)
def mark_delivered(order_id: str, current_user: User = Depends(delivery_actor), db: Session = Depends(get_db)):
    order = lifecycle.mark_delivered(db, order_id, current_user)
    return {"message": "Order delivered", "order": order}
