"""Extraction Stage - Pull shipment facts out of carrier guide text.

Input is raw text already produced by the PDF/OCR text source. The text
is classified first; only carrier guides are parsed. Each field is read
by an ordered rule list where the first matching rule wins.
"""

import logging
from typing import Optional

from shipnotify.models import (
    RAW_TEXT_EXCERPT_LIMIT,
    Carrier,
    DocumentClassification,
    ShipmentRecord,
)

from .cities import find_city
from .matching import first_match
from .rules import (
    ADDRESS_RULES,
    CARRIER_RULES,
    NAME_RULES,
    TRACKING_RULES,
    find_phone,
)
from .stage_classify import DocumentClassifier

logger = logging.getLogger(__name__)


class AlternateFormatError(Exception):
    """The text is a chat screenshot, not a carrier guide."""

    def __init__(self, classification: DocumentClassification = DocumentClassification.ALTERNATE_CHAT_FORMAT):
        super().__init__(f"Document classified as {classification.value}")
        self.classification = classification


class GuideExtractor:
    """Turns carrier guide text into a ShipmentRecord."""

    def __init__(self, classifier: Optional[DocumentClassifier] = None):
        self.classifier = classifier or DocumentClassifier()

    def classify(self, text: str) -> DocumentClassification:
        return self.classifier.classify(text)

    def extract(self, text: str) -> Optional[ShipmentRecord]:
        """Extract a shipment record from ``text``.

        Args:
            text: Raw document text.

        Returns:
            ShipmentRecord, or None when the text is not a carrier guide or
            lacks a tracking number plus a name or phone.

        Raises:
            AlternateFormatError: If the text is a chat screenshot.
        """
        classification = self.classify(text)
        if classification == DocumentClassification.ALTERNATE_CHAT_FORMAT:
            raise AlternateFormatError(classification)
        if classification != DocumentClassification.CARRIER_GUIDE:
            logger.debug("Text not recognised as a carrier guide", extra={"classification": classification.value})
            return None

        tracking_number = first_match(text, TRACKING_RULES)
        record = None
        if tracking_number:
            city_hit = find_city(text)
            city, department = city_hit if city_hit else (None, None)
            record = ShipmentRecord(
                tracking_number=tracking_number,
                carrier=first_match(text, CARRIER_RULES) or Carrier.UNKNOWN,
                customer_name=first_match(text, NAME_RULES),
                customer_phone=find_phone(text),
                shipping_address=first_match(text, ADDRESS_RULES),
                city=city,
                department=department,
                raw_text=text[:RAW_TEXT_EXCERPT_LIMIT],
            )

        if record is None or not record.has_contact:
            logger.info(
                "Guide lacks required fields",
                extra={
                    "event": "extract_insufficient",
                    "has_tracking": bool(tracking_number),
                    "has_name": bool(record and record.customer_name),
                    "has_phone": bool(record and record.customer_phone),
                },
            )
            return None
        return record
