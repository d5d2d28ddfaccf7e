"""Pipeline stages for shipping guide processing.

Stages:
1. stage_text - PDF text layer / Tesseract OCR to raw text
2. stage_classify - carrier guide vs chat screenshot vs unknown
3. stage_extract - shipment record from carrier guide text
4. stage_chat - order details from chat screenshots (redirect path)
5. stage_match - tiered order resolution against the order store

The orchestrator runs them in order and hands matches to delivery.
"""

from .cities import COLOMBIAN_CITIES, find_city, lookup_city
from .matching import first_match, strip_accents
from .orchestrator import ShipmentNotifier, build_notifier
from .rules import normalize_phone
from .stage_chat import ChatOrderExtractor
from .stage_classify import ClassificationScores, DocumentClassifier
from .stage_extract import AlternateFormatError, GuideExtractor
from .stage_match import CustomerResolver, StoreUnavailableError
from .stage_text import DocumentTextSource

__all__ = [
    # Text
    "DocumentTextSource",
    # Classification
    "ClassificationScores",
    "DocumentClassifier",
    # Extraction
    "AlternateFormatError",
    "GuideExtractor",
    "normalize_phone",
    "first_match",
    "strip_accents",
    # Reference data
    "COLOMBIAN_CITIES",
    "find_city",
    "lookup_city",
    # Chat orders
    "ChatOrderExtractor",
    # Matching
    "CustomerResolver",
    "StoreUnavailableError",
    # Orchestration
    "ShipmentNotifier",
    "build_notifier",
]
