from sqlalchemy.orm import Session

from core.config import settings
from models.order import OrderNumber


def next_order_number(db: Session) -> str:
    """Reserve the next order number from the database sequence, e.g. ``WK12345``."""
    row = OrderNumber()
    db.add(row)
    db.flush()
    return f"{settings.ORDER_NUMBER_PREFIX}{settings.ORDER_NUMBER_START - 1 + row.id}"
