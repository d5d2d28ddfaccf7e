"""Records extracted from shipping documents."""

from typing import Optional

from pydantic import BaseModel, Field

from .base import Carrier

RAW_TEXT_EXCERPT_LIMIT = 1000


class ShipmentRecord(BaseModel):
    """
    Shipment facts pulled from one carrier guide.

    Created once per parse call and never mutated. A record only exists when
    it has a tracking number and at least a customer name or phone.
    """

    tracking_number: str = Field(..., min_length=1)
    carrier: Carrier = Field(default=Carrier.UNKNOWN)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = Field(
        None, description="Normalised to 57XXXXXXXXXX"
    )
    shipping_address: Optional[str] = None
    city: Optional[str] = None
    department: Optional[str] = None
    raw_text: str = Field(default="", max_length=RAW_TEXT_EXCERPT_LIMIT)

    @property
    def has_contact(self) -> bool:
        """Whether the record names or phones somebody."""
        return bool(self.customer_name or self.customer_phone)

    class Config:
        frozen = True


class ChatOrder(BaseModel):
    """Order details read from a customer chat screenshot."""

    customer_name: Optional[str] = None
    phone: Optional[str] = Field(None, description="10-digit national number")
    address: Optional[str] = None
    city: Optional[str] = None
    department: Optional[str] = None
    neighborhood: Optional[str] = None
    cedula: Optional[str] = None
    references: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    raw_text: str = ""
