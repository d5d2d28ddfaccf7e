"""Chat Order Stage - Read order details from customer chat screenshots.

Documents classified as ``alternate_chat_format`` are not carrier guides;
they are screenshots where a customer typed their delivery details. This
stage recovers those details so the caller can route the order elsewhere.
"""

import re
from typing import Optional

from shipnotify.models import ChatOrder

from .cities import find_city, lookup_city
from .matching import Rule, first_match, group

_UPPER = "A-ZÁÉÍÓÚÑ"
_LOWER = "a-záéíóúñ"

CHAT_NAME_RULES: list[Rule] = [
    (
        re.compile(
            rf"(?i:{label})\s*:\s*([{_UPPER}][{_LOWER}{_UPPER}]+(?:[^\S\n]+[{_UPPER}{_LOWER}.]+){{1,3}})"
        ),
        group(1),
    )
    for label in ("nombre", "cliente", "para", "destinatario")
]

# Bare full-name line: 2-4 capitalised words and nothing else
FULL_NAME_LINE = re.compile(rf"^[{_UPPER}][{_LOWER}]+(?:\s+[{_UPPER}][{_LOWER}]+){{1,3}}$")

CHAT_PHONE_RULES: list[Rule] = [
    (re.compile(r"\+57\s*3\d{2}[\s-]?\d{3}[\s-]?\d{2}[\s-]?\d{2}"), group(0)),
    (re.compile(r"\b3\d{2}[\s-]?\d{3}[\s-]?\d{2}[\s-]?\d{2}\b"), group(0)),
    (re.compile(r"\b3\d{2}[\s-]?\d{7}\b"), group(0)),
    (re.compile(r"\b3\d{9}\b"), group(0)),
]

_HOUSE_NUMBER = r"\s*(?:#|No\.?|nro\.?)\s*[\d\-]+[^,\n]*"

CHAT_ADDRESS_RULES: list[Rule] = [
    (re.compile(r"(?:direcci[oó]n|dir)[:\s]+(.+?)(?:\n|ciudad|barrio|tel|cel|$)", re.IGNORECASE), group(1)),
    (re.compile(rf"\b(?:calle|cl)\s*\d+{_HOUSE_NUMBER}", re.IGNORECASE), group(0)),
    (re.compile(rf"\b(?:carrera|cra|cr)\s*\d+{_HOUSE_NUMBER}", re.IGNORECASE), group(0)),
    (re.compile(r"\b(?:avenida|avda|av)\s+[\w\s]+?\s*(?:#|No\.?|nro\.?)?\s*[\d\-]+[^,\n]*", re.IGNORECASE), group(0)),
    (re.compile(rf"\b(?:transversal|tv)\s*\d+{_HOUSE_NUMBER}", re.IGNORECASE), group(0)),
    (re.compile(rf"\b(?:diagonal|dg)\s*\d+{_HOUSE_NUMBER}", re.IGNORECASE), group(0)),
    (re.compile(rf"\b(?:circular|circ)\s*\d+{_HOUSE_NUMBER}", re.IGNORECASE), group(0)),
]

CITY_LABELS = [
    re.compile(r"ciudad\s*:\s*([^\n,]+)", re.IGNORECASE),
    re.compile(r"municipio\s*:\s*([^\n,]+)", re.IGNORECASE),
]

NEIGHBORHOOD_RULES: list[Rule] = [
    (re.compile(p, re.IGNORECASE), group(1))
    for p in (
        r"barrio[:\s]+([^\n,;.]+)",
        r"sector[:\s]+([^\n,;.]+)",
        r"b/[:\s]+([^\n,;.]+)",
        r"urbanizaci[oó]n[:\s]+([^\n,;.]+)",
    )
]

CEDULA_RULES: list[Rule] = [
    (re.compile(r"(?:c\.?c\.?|c[eé]dula|documento)[:\s#]?\s*(\d{6,10})", re.IGNORECASE), group(1)),
    (re.compile(r"\bID[:\s]+(\d{6,10})\b", re.IGNORECASE), group(1)),
]

REFERENCE_RULES: list[Rule] = [
    (re.compile(p, re.IGNORECASE), group(1))
    for p in (
        r"(?:referencia|ref\.?|nota|observaci[oó]n|indicaci[oó]n)[:\s]+([^\n]+)",
        r"(?:entregar|entrega)[:\s]+([^\n]+)",
        r"(?:punto\s+de\s+referencia)[:\s]+([^\n]+)",
    )
]

CORE_FIELDS = ("customer_name", "phone", "address", "city")
OPTIONAL_FIELDS = ("neighborhood", "department", "cedula", "references")


class ChatOrderExtractor:
    """Extracts order details from chat screenshot text."""

    def extract(self, text: str) -> ChatOrder:
        city, department = self.extract_city(text)
        fields = {
            "customer_name": self.extract_name(text),
            "phone": self.extract_phone(text),
            "address": first_match(text, CHAT_ADDRESS_RULES),
            "city": city,
            "department": department,
            "neighborhood": first_match(text, NEIGHBORHOOD_RULES),
            "cedula": first_match(text, CEDULA_RULES),
            "references": first_match(text, REFERENCE_RULES),
        }
        return ChatOrder(**fields, confidence=completeness(fields), raw_text=text)

    def extract_name(self, text: str) -> Optional[str]:
        labelled = first_match(text, CHAT_NAME_RULES)
        if labelled:
            return labelled
        for line in text.splitlines():
            candidate = line.strip()
            if FULL_NAME_LINE.match(candidate):
                return candidate
        return None

    def extract_phone(self, text: str) -> Optional[str]:
        """10-digit national number, without country code."""
        raw = first_match(text, CHAT_PHONE_RULES)
        if raw is None:
            return None
        digits = re.sub(r"\D", "", raw)
        return digits[2:] if len(digits) == 12 and digits.startswith("57") else digits

    def extract_city(self, text: str) -> tuple[Optional[str], Optional[str]]:
        for pattern in CITY_LABELS:
            match = pattern.search(text)
            if match:
                name = match.group(1).strip()
                known = lookup_city(name)
                if known:
                    return known
                return name, None
        hit = find_city(text)
        return hit if hit else (None, None)


def completeness(fields: dict) -> float:
    """Weighted share of filled fields: core fields count double."""
    score = sum(2 for name in CORE_FIELDS if fields.get(name))
    score += sum(1 for name in OPTIONAL_FIELDS if fields.get(name))
    max_score = 2 * len(CORE_FIELDS) + len(OPTIONAL_FIELDS)
    return round(score / max_score, 2)
