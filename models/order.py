from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Numeric, JSON, Integer, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, new_uuid


PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"

MONEY_FIELDS = ("item_total", "delivery_fee", "platform_fee", "cashback_used", "total")


def _money(value) -> Decimal:
    return Decimal("0") if value is None else Decimal(str(value))


class OrderNumber(Base):
    """Durable sequence backing human-readable order numbers."""

    __tablename__ = "order_numbers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    order_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.id", ondelete="RESTRICT"), index=True)
    status: Mapped[str] = mapped_column(String(30), default="pending", index=True)

    # [{"productId", "quantity", "price", "selectedVariants", "selectedAddOns", "customization"}]
    items: Mapped[list] = mapped_column(JSON)

    item_total: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    cashback_used: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    commission_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    vendor_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    delivery_type: Mapped[str] = mapped_column(String(20), default="local")
    # Snapshot at order time: {"name", "phone", "address", "city", "pincode"}
    delivery_address: Mapped[dict] = mapped_column(JSON)
    gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)

    payment_status: Mapped[str] = mapped_column(String(20), default=PAYMENT_PENDING, index=True)
    payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gateway_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    # {productId: [image urls]}
    mockup_images: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    mockup_approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    revision_request: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    accept_deadline: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    mockup_sla: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cashback_credited: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("User")
    vendor = relationship("Vendor")

    def totals_balance(self) -> bool:
        expected = _money(self.item_total) + _money(self.delivery_fee) + _money(self.platform_fee) - _money(self.cashback_used)
        return _money(self.total) == expected

    def product_ids(self) -> list[str]:
        return [item.get("productId") for item in self.items or []]


@event.listens_for(Order, "before_insert")
def _check_order_totals(mapper, connection, target: Order) -> None:
    for field in MONEY_FIELDS:
        if getattr(target, field) is None:
            setattr(target, field, Decimal("0"))
        if _money(getattr(target, field)) < 0:
            raise ValueError(f"Order {field} must not be negative")
    if not target.totals_balance():
        raise ValueError("Order total must equal item total + delivery fee + platform fee - cashback used")
