from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, new_uuid


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    category: Mapped[str] = mapped_column(String(100), index=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    images: Mapped[list | None] = mapped_column(JSON, nullable=True)
    # [{"id", "name", "options": [{"id", "label", "priceModifier"}]}]
    variants: Mapped[list | None] = mapped_column(JSON, nullable=True)
    # [{"id", "name", "price", "requiresDetails"}]
    add_ons: Mapped[list | None] = mapped_column(JSON, nullable=True)
    # {"requiresText", "requiresPhoto", "maxTextLength"}
    customization_schema: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_personalizable: Mapped[bool] = mapped_column(Boolean, default=False)
    mockup_sla_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = relationship("Vendor", back_populates="products")
