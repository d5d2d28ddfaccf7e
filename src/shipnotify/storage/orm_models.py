"""SQLAlchemy ORM models for the order store.

The ``orders`` table belongs to the storefront; this service only reads
pending orders and writes tracking details back.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shipnotify.models import OrderStatus

from .database import Base


class OrderORM(Base):
    """Orders table - storefront orders awaiting shipment."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # Customer
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    shipping_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    shipping_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Processing state
    processing_status: Mapped[str] = mapped_column(
        String(32), default=OrderStatus.PENDING.value, nullable=False
    )

    # Shipping
    tracking_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    carrier: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    shipping_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    shipped_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_orders_processing_status", "processing_status"),
        Index("ix_orders_created_at", "created_at"),
    )
