"""Pydantic models for data flowing through the notifier.

Model flow:
- raw text -> ShipmentRecord (or ChatOrder for chat screenshots)
- ShipmentRecord -> CustomerMatch (via OrderRecord rows)
- CustomerMatch -> delivery -> ProcessResult
"""

from .base import (
    ELIGIBLE_ORDER_STATUSES,
    TIER_CONFIDENCE,
    Carrier,
    CircuitState,
    DocumentClassification,
    MatchTier,
    OrderStatus,
    ProcessingStatus,
)
from .delivery import HealthStatus, ProcessResult
from .order import CustomerMatch, OrderRecord
from .shipment import RAW_TEXT_EXCERPT_LIMIT, ChatOrder, ShipmentRecord

__all__ = [
    # Base types
    "Carrier",
    "CircuitState",
    "DocumentClassification",
    "ELIGIBLE_ORDER_STATUSES",
    "MatchTier",
    "OrderStatus",
    "ProcessingStatus",
    "TIER_CONFIDENCE",
    # Shipment
    "ChatOrder",
    "RAW_TEXT_EXCERPT_LIMIT",
    "ShipmentRecord",
    # Order
    "CustomerMatch",
    "OrderRecord",
    # Delivery
    "HealthStatus",
    "ProcessResult",
]
