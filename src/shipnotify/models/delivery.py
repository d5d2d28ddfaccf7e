"""Delivery and end-to-end processing results."""

from typing import Optional

from pydantic import BaseModel, Field

from .base import CircuitState, ProcessingStatus
from .shipment import ChatOrder


class HealthStatus(BaseModel):
    """Result of probing the messaging gateway."""

    healthy: bool
    message: str
    circuit_state: CircuitState
    response_time_ms: Optional[float] = Field(None, ge=0.0)


class ProcessResult(BaseModel):
    """What happened to one shipping document."""

    success: bool
    status: ProcessingStatus
    message: str
    tracking_number: Optional[str] = None
    customer_name: Optional[str] = None
    sent_to: Optional[str] = None
    tracking_saved: bool = False
    chat_order: Optional[ChatOrder] = None

    @property
    def retry_later(self) -> bool:
        """Whether the caller should answer with a 503-style retry hint."""
        return self.status == ProcessingStatus.STORE_UNAVAILABLE
