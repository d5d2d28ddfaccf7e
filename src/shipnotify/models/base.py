"""Enums and common types shared across the shipment notifier."""

from enum import Enum


class Carrier(str, Enum):
    """Carriers whose shipping guides the extractor recognises."""

    SERVIENTREGA = "Servientrega"
    COORDINADORA = "Coordinadora"
    INTER_RAPIDISIMO = "InterRapidisimo"
    ENVIA = "Envia"
    TCC = "TCC"
    CUATRO_SETENTA_Y_DOS = "472"
    DEPRISA = "Deprisa"
    UNKNOWN = "Unknown"


class DocumentClassification(str, Enum):
    """What kind of document a piece of text came from."""

    CARRIER_GUIDE = "carrier_guide"
    ALTERNATE_CHAT_FORMAT = "alternate_chat_format"
    UNKNOWN = "unknown"


class MatchTier(str, Enum):
    """Strategy that produced a customer match."""

    PHONE = "phone"
    NAME = "name"
    ADDRESS = "address"


# Confidence ladder, one score per tier
TIER_CONFIDENCE: dict[MatchTier, int] = {
    MatchTier.PHONE: 100,
    MatchTier.NAME: 80,
    MatchTier.ADDRESS: 60,
}


class OrderStatus(str, Enum):
    """Order processing states stored in the ``orders`` table."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


# Only these orders may receive a tracking number
ELIGIBLE_ORDER_STATUSES = (OrderStatus.CONFIRMED.value, OrderStatus.PROCESSING.value)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class ProcessingStatus(str, Enum):
    """Outcome of processing one shipping document."""

    SENT = "sent"
    WRONG_FORMAT = "wrong_format"
    UNPARSEABLE = "unparseable"
    NO_MATCH = "no_match"
    STORE_UNAVAILABLE = "store_unavailable"
    DELIVERY_FAILED = "delivery_failed"
