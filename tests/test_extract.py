"""Tests for carrier guide extraction."""

import re

import pytest

from shipnotify.models import Carrier, ShipmentRecord
from shipnotify.pipeline import AlternateFormatError, GuideExtractor, first_match, normalize_phone
from shipnotify.pipeline.rules import CARRIER_RULES, TRACKING_RULES
from shipnotify.pipeline.matching import constant


@pytest.fixture
def extractor():
    return GuideExtractor()


class TestFirstMatch:
    """Tests for the ordered rule matcher."""

    def test_first_rule_wins(self):
        """Earlier rules take precedence over later ones."""
        rules = [
            (re.compile("abc"), constant("first")),
            (re.compile("abc"), constant("second")),
        ]
        assert first_match("xxabcxx", rules) == "first"

    def test_skips_non_matching_rules(self):
        rules = [
            (re.compile("zzz"), constant("first")),
            (re.compile("abc"), constant("second")),
        ]
        assert first_match("abc", rules) == "second"

    def test_no_match(self):
        assert first_match("abc", [(re.compile("zzz"), constant(1))]) is None

    def test_carrier_dictionary_order_breaks_ties(self):
        """Two carriers in one text: the earlier dictionary entry wins."""
        text = "Coordinadora ... reexpedido por Servientrega"
        assert first_match(text, CARRIER_RULES) == Carrier.SERVIENTREGA

    def test_tracking_label_beats_bare_digits(self):
        """A labelled token wins over a bare digit run earlier in the text."""
        text = "Ref 12345678901\nNúmero de guía: 700012345678"
        assert first_match(text, TRACKING_RULES) == "700012345678"


class TestNormalizePhone:
    """Tests for phone normalisation."""

    @pytest.mark.parametrize(
        "raw",
        ["3001234567", "300 123 4567", "300-123-4567", "300.123.4567", "+57 300 123 4567"],
    )
    def test_formats(self, raw):
        assert normalize_phone(raw) == "573001234567"

    def test_idempotent(self):
        """Normalising a normalised number changes nothing."""
        once = normalize_phone("3001234567")
        assert normalize_phone(once) == once == "573001234567"

    def test_empty(self):
        assert normalize_phone("") is None
        assert normalize_phone(None) is None


class TestExtract:
    """Tests for GuideExtractor.extract."""

    def test_servientrega_guide(self, extractor, guide_text):
        """The reference guide yields the expected record."""
        record = extractor.extract(guide_text)

        assert isinstance(record, ShipmentRecord)
        assert record.carrier == Carrier.SERVIENTREGA
        assert record.carrier == "Servientrega"
        assert record.tracking_number == "SV123456789"
        assert record.customer_name == "Juan Pérez"
        assert record.customer_phone == "573001234567"
        assert record.city == "Bogotá"
        assert record.department == "Cundinamarca"
        assert record.shipping_address is None

    def test_record_is_immutable(self, extractor, guide_text):
        record = extractor.extract(guide_text)
        with pytest.raises(Exception):
            record.tracking_number = "OTHER"

    def test_bare_digit_tracking_number(self, extractor):
        """Without a label, a 10-15 digit run is taken as tracking number."""
        text = "COORDINADORA MERCANTIL\n54012345678\nPara: Ana Lucía Rojas\nCali"
        record = extractor.extract(text)

        assert record.tracking_number == "54012345678"
        assert record.carrier == Carrier.COORDINADORA
        assert record.customer_name == "Ana Lucía Rojas"
        assert record.customer_phone is None
        assert record.city == "Cali"
        assert record.department == "Valle del Cauca"

    def test_letter_prefix_tracking_number(self, extractor):
        text = "Inter Rapidísimo\nEnvío IR240012345678\nCliente: Pedro Gil\nTel 312 555 1234"
        record = extractor.extract(text)

        assert record.carrier == Carrier.INTER_RAPIDISIMO
        assert record.tracking_number == "IR240012345678"
        assert record.customer_phone == "573125551234"

    def test_address_and_accent_insensitive_city(self, extractor):
        """Addresses are captured and cities match without accents."""
        text = (
            "TCC\nGuia: TC4455667788\nDestinatario: Carlos Mejía\n"
            "Dirección: Carrera 70 # 44-21 Laureles\nMEDELLIN - ANTIOQUIA"
        )
        record = extractor.extract(text)

        assert record.carrier == Carrier.TCC
        assert record.shipping_address == "Carrera 70 # 44-21 Laureles"
        assert record.city == "Medellín"
        assert record.department == "Antioquia"

    def test_all_caps_name(self, extractor):
        text = "SERVIENTREGA\nGUIA: 2093847561\nDESTINATARIO: JUAN PEREZ\nBOGOTA"
        record = extractor.extract(text)
        assert record.customer_name == "JUAN PEREZ"

    def test_address_capped(self, extractor):
        """At most 50 characters follow the house number."""
        tail = "x" * 80
        text = f"SERVIENTREGA\nGuía: SV123456789\nTeléfono: 3001234567\nCalle 10 {tail}"
        record = extractor.extract(text)
        assert record.shipping_address == f"Calle 10 {'x' * 49}"

    def test_city_must_be_whole_word(self, extractor):
        """'Cali' inside 'California' is not a city hit."""
        text = "Servientrega\nGuía: SV123456789\nTeléfono: 3001234567\nCalifornia"
        assert extractor.extract(text).city is None

    def test_missing_contact_returns_none(self, extractor):
        """Tracking number alone is not enough."""
        assert extractor.extract("Servientrega\nGuía: SV123456789") is None

    def test_missing_tracking_returns_none(self, extractor):
        """No tracking-shaped token means the text is not a guide at all."""
        assert extractor.extract("Servientrega\nDestinatario: Juan Pérez") is None

    def test_unknown_returns_none(self, extractor):
        """Text that is neither guide nor chat yields no record."""
        assert extractor.extract("Factura de venta 0001") is None
        assert extractor.extract("") is None

    def test_chat_screenshot_raises(self, extractor, chat_text):
        """Chat screenshots are signalled, not silently misparsed."""
        with pytest.raises(AlternateFormatError) as excinfo:
            extractor.extract(chat_text)
        assert excinfo.value.classification.value == "alternate_chat_format"

    def test_raw_text_excerpt_capped(self, extractor, guide_text):
        text = guide_text + "\n" + "relleno " * 300
        record = extractor.extract(text)
        assert len(record.raw_text) == 1000
        assert record.raw_text == text[:1000]


class TestShipmentRecord:
    """Tests for the ShipmentRecord contact check used by the validity gate."""

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"customer_name": "Juan Pérez"}, True),
            ({"customer_phone": "573001234567"}, True),
            ({}, False),
        ],
    )
    def test_has_contact(self, fields, expected):
        assert ShipmentRecord(tracking_number="SV123456789", **fields).has_contact is expected
