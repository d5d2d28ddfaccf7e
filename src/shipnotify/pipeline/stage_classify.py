"""Classification Stage - Decide what kind of document a text came from.

Two independent feature scores are computed from the raw text:

- carrier-guide: a known carrier name AND a tracking-number-shaped token
- alternate chat format: how many chat-screenshot features appear
  (clock time, greeting phrase, dense address keywords, leading
  ``+57 3xx`` header, message delivery ticks)

Carrier guides take precedence. Chat format needs at least two features
and no carrier name at all.
"""

import re
from dataclasses import dataclass, field

from shipnotify.models import DocumentClassification

from .matching import first_match
from .rules import CARRIER_RULES, TRACKING_RULES

ALTERNATE_FORMAT_THRESHOLD = 2

CLOCK_TIME = re.compile(
    r"\b(?:[01]?\d|2[0-3]):[0-5]\d(?:\s*(?:[ap]\.?\s?m\.?))?(?!\d)", re.IGNORECASE
)
GREETINGS = re.compile(
    r"\b(?:hola|buen[oa]s?\s+(?:d[ií]as|tardes|noches)|saludos|gracias|muchas\s+gracias|"
    r"qu[eé]\s+tal|buenas)\b",
    re.IGNORECASE,
)
ADDRESS_KEYWORDS = re.compile(
    r"\b(?:direcci[oó]n|dir|calle|carrera|cra|barrio|ciudad|municipio|apto|apartamento|"
    r"casa|conjunto|torre|sector)\b",
    re.IGNORECASE,
)
MIN_ADDRESS_KEYWORDS = 2
LEADING_PHONE_HEADER = re.compile(r"\A\s*\+57[\s-]?3\d{2}")
TICK_GLYPHS = re.compile(r"[✓✔☑]{1,2}")


@dataclass
class ClassificationScores:
    """Feature evidence behind a classification."""

    has_carrier: bool = False
    has_tracking: bool = False
    alternate_features: list[str] = field(default_factory=list)

    @property
    def carrier_guide(self) -> bool:
        return self.has_carrier and self.has_tracking

    @property
    def alternate_score(self) -> int:
        return len(self.alternate_features)


class DocumentClassifier:
    """Tags text as a carrier guide, a chat screenshot, or unknown."""

    def score(self, text: str) -> ClassificationScores:
        """Compute both feature scores for ``text``."""
        scores = ClassificationScores(
            has_carrier=first_match(text, CARRIER_RULES) is not None,
            has_tracking=first_match(text, TRACKING_RULES) is not None,
        )

        if CLOCK_TIME.search(text):
            scores.alternate_features.append("clock_time")
        if GREETINGS.search(text):
            scores.alternate_features.append("greeting")
        if len(ADDRESS_KEYWORDS.findall(text)) >= MIN_ADDRESS_KEYWORDS:
            scores.alternate_features.append("address_keywords")
        if LEADING_PHONE_HEADER.search(text):
            scores.alternate_features.append("phone_header")
        if TICK_GLYPHS.search(text):
            scores.alternate_features.append("delivery_ticks")

        return scores

    def classify(self, text: str) -> DocumentClassification:
        """Classify ``text``.

        Args:
            text: Raw OCR or PDF text; may be empty.

        Returns:
            DocumentClassification tag.
        """
        if not text or not text.strip():
            return DocumentClassification.UNKNOWN

        scores = self.score(text)
        if scores.carrier_guide:
            return DocumentClassification.CARRIER_GUIDE
        if scores.alternate_score >= ALTERNATE_FORMAT_THRESHOLD and not scores.has_carrier:
            return DocumentClassification.ALTERNATE_CHAT_FORMAT
        return DocumentClassification.UNKNOWN
