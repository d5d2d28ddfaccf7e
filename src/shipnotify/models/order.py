"""Pending orders and customer matches."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .base import TIER_CONFIDENCE, MatchTier


class OrderRecord(BaseModel):
    """A row of the ``orders`` table as seen by the resolver."""

    id: int
    order_number: str
    phone_number: Optional[str] = None
    shipping_phone: Optional[str] = None
    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    processing_status: str
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # For SQLAlchemy compatibility


class CustomerMatch(BaseModel):
    """Result of resolving a shipment record to a pending order."""

    order_id: int
    order_number: str
    phone: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    confidence: int = Field(..., ge=0, le=100)
    matched_by: MatchTier

    @classmethod
    def from_order(cls, order: OrderRecord, tier: MatchTier) -> "CustomerMatch":
        """Build a match for ``order`` scored by the tier that found it."""
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            phone=order.phone_number or order.shipping_phone,
            name=order.customer_name,
            address=order.shipping_address,
            confidence=TIER_CONFIDENCE[tier],
            matched_by=tier,
        )
