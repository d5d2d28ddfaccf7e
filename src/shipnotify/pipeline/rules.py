"""Regular-expression rule tables for shipping guides.

Every table is an ordered list of ``(pattern, handler)`` pairs evaluated
with ``first_match``; earlier entries win.
"""

import re
from typing import Optional

from shipnotify.models import Carrier

from .matching import Rule, constant, group

COUNTRY_CODE = "57"

# Carrier dictionary. When two carriers appear in one text, the earlier
# entry wins.
CARRIER_RULES: list[Rule] = [
    (re.compile(r"servientrega", re.IGNORECASE), constant(Carrier.SERVIENTREGA)),
    (re.compile(r"coordinadora", re.IGNORECASE), constant(Carrier.COORDINADORA)),
    (re.compile(r"inter\s*r[aá]pid[ií]simo", re.IGNORECASE), constant(Carrier.INTER_RAPIDISIMO)),
    (re.compile(r"\benv[ií]a\b|colvanes", re.IGNORECASE), constant(Carrier.ENVIA)),
    (re.compile(r"\btcc\b", re.IGNORECASE), constant(Carrier.TCC)),
    (re.compile(r"\b472\b"), constant(Carrier.CUATRO_SETENTA_Y_DOS)),
    (re.compile(r"deprisa", re.IGNORECASE), constant(Carrier.DEPRISA)),
]

# Tracking numbers, from most to least specific
TRACKING_RULES: list[Rule] = [
    (
        re.compile(
            r"(?i:gu[ií]a|tracking|n[uú]mero)\s*(?:de\s+gu[ií]a\s*)?[:#]?\s*"
            r"\b((?=[A-Za-z]*\d)[A-Za-z0-9]{8,20})\b"
        ),
        group(1),
    ),
    (re.compile(r"(?<![\d+])\b(\d{10,15})\b"), group(1)),
    (re.compile(r"\b([A-Z]{2,3}\d{9,12})\b"), group(1)),
]

_UPPER = "A-ZÁÉÍÓÚÑÜ"
_LOWER = "a-záéíóúñü"
_WORD = rf"[{_UPPER}](?:[{_LOWER}]+|[{_UPPER}]+)"

# Label followed by 2-4 capitalised (or all-caps) words on the same line
NAME_RULES: list[Rule] = [
    (
        re.compile(
            rf"\b(?i:destinatario|nombre|cliente|para)\s*[:#]?[ \t]*"
            rf"({_WORD}(?:[ \t]+{_WORD}){{1,3}})"
        ),
        group(1),
    ),
]

# Colombian mobile: optional +57, then 3 and nine more digits
PHONE_PATTERN = re.compile(
    r"(?<!\d)(?:\+?57[\s.-]?)?(3\d{2}[\s.-]?\d{3}[\s.-]?\d{4})(?!\d)"
)

# Street-type keyword plus house number, at most 50 trailing characters
ADDRESS_RULES: list[Rule] = [
    (
        re.compile(
            r"\b((?:avenida|carrera|calle|transversal|diagonal|circular|cra|cll|av|kr|cl|tv|dg)"
            r"\.?\s*#?\s*\d+[^,\n]{0,50})",
            re.IGNORECASE,
        ),
        group(1),
    ),
]


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """Normalise a Colombian mobile number to ``57XXXXXXXXXX``.

    Separators are stripped and the country code added when missing.
    Already-normalised numbers come back unchanged.
    """
    if not raw:
        return None
    digits = re.sub(r"\D", "", raw)
    if not digits:
        return None
    if len(digits) == 12 and digits.startswith(COUNTRY_CODE):
        return digits
    if len(digits) == 10:
        return COUNTRY_CODE + digits
    return digits


def find_phone(text: str) -> Optional[str]:
    """First Colombian mobile number in ``text``, normalised."""
    match = PHONE_PATTERN.search(text)
    if match is None:
        return None
    return normalize_phone(match.group(1))
