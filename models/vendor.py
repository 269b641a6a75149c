from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, new_uuid


VENDOR_PENDING = "pending"
VENDOR_APPROVED = "approved"
VENDOR_REJECTED = "rejected"


class Vendor(Base):
    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(150), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str] = mapped_column(String(100), index=True)

    # Pickup location, used for distance-based delivery
    store_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    store_lat: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)
    store_lng: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)
    max_delivery_radius: Mapped[int] = mapped_column(Integer, default=10)  # km
    intercity_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Status
    is_online: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[str] = mapped_column(String(20), default=VENDOR_PENDING, index=True)  # pending, approved, rejected
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("18"))  # percent
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("0"))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User")
    products = relationship("Product", back_populates="vendor")
