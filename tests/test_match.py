"""Tests for customer resolution against the order store."""

import pytest
from sqlalchemy import select

from shipnotify.models import MatchTier, ShipmentRecord
from shipnotify.pipeline import CustomerResolver, StoreUnavailableError
from shipnotify.storage import OrderORM, close_db, create_engine, create_session_factory, session_scope


def make_record(**overrides) -> ShipmentRecord:
    fields = {"tracking_number": "SV123456789", "carrier": "Servientrega"}
    fields.update(overrides)
    return ShipmentRecord(**fields)


@pytest.fixture
def resolver(session_factory):
    return CustomerResolver(session_factory)


class TestPhoneTier:
    """Tests for phone matching."""

    async def test_phone_match(self, resolver, add_orders):
        await add_orders(
            {"order_number": "ORD-1", "phone_number": "3001234567", "customer_name": "Juan Pérez"}
        )

        match = await resolver.resolve(make_record(customer_phone="573001234567"))

        assert match.order_number == "ORD-1"
        assert match.matched_by == MatchTier.PHONE
        assert match.confidence == 100
        assert match.phone == "3001234567"

    async def test_shipping_phone_match(self, resolver, add_orders):
        await add_orders(
            {"order_number": "ORD-2", "phone_number": "3119999999", "shipping_phone": "+57 3001234567"}
        )
        match = await resolver.resolve(make_record(customer_phone="573001234567"))
        assert match.order_number == "ORD-2"

    async def test_phone_beats_name(self, resolver, add_orders):
        """With both a phone hit and a name hit, the phone tier wins."""
        await add_orders(
            {"order_number": "BY-NAME", "customer_name": "Juan Pérez", "phone_number": "3110000000",
             "age_minutes": 0},
            {"order_number": "BY-PHONE", "customer_name": "Otro Cliente", "phone_number": "3001234567",
             "age_minutes": 60},
        )

        match = await resolver.resolve(
            make_record(customer_phone="573001234567", customer_name="Juan Pérez")
        )

        assert match.order_number == "BY-PHONE"
        assert match.matched_by == MatchTier.PHONE
        assert match.confidence == 100

    async def test_newest_order_first(self, resolver, add_orders):
        await add_orders(
            {"order_number": "OLD", "phone_number": "3001234567", "age_minutes": 120},
            {"order_number": "NEW", "phone_number": "3001234567", "age_minutes": 5},
        )
        match = await resolver.resolve(make_record(customer_phone="573001234567"))
        assert match.order_number == "NEW"


class TestEligibility:
    """Only confirmed/processing orders without tracking are eligible."""

    async def test_shipped_orders_ignored(self, resolver, add_orders):
        await add_orders(
            {"order_number": "DONE", "phone_number": "3001234567", "tracking_number": "X1"},
            {"order_number": "PENDING", "phone_number": "3001234567", "processing_status": "pending"},
            {"order_number": "CANCELLED", "phone_number": "3001234567", "processing_status": "cancelled"},
        )
        assert await resolver.resolve(make_record(customer_phone="573001234567")) is None

    async def test_processing_status_eligible(self, resolver, add_orders):
        await add_orders(
            {"order_number": "P-1", "phone_number": "3001234567", "processing_status": "processing"}
        )
        match = await resolver.resolve(make_record(customer_phone="573001234567"))
        assert match.order_number == "P-1"


class TestNameAndAddressTiers:
    """Tests for the lower-confidence tiers."""

    async def test_name_match_uses_first_token(self, resolver, add_orders):
        await add_orders(
            {"order_number": "N-1", "customer_name": "JUAN CARLOS PÉREZ",
             "shipping_address": "Calle 1 # 2-3, Bogotá", "phone_number": "3110000000"}
        )

        match = await resolver.resolve(make_record(customer_name="Juan Pérez", city="Bogotá"))

        assert match.order_number == "N-1"
        assert match.matched_by == MatchTier.NAME
        assert match.confidence == 80

    async def test_name_match_filtered_by_city(self, resolver, add_orders):
        await add_orders(
            {"order_number": "N-2", "customer_name": "Juan Gómez", "shipping_address": "Cra 5 # 10-20, Cali"}
        )
        assert await resolver.resolve(make_record(customer_name="Juan Pérez", city="Pereira")) is None

    async def test_address_match(self, resolver, add_orders):
        await add_orders(
            {"order_number": "A-1", "customer_name": "Otra Persona",
             "shipping_address": "CARRERA 70 # 44-21 LAURELES ESTADIO, MEDELLÍN"}
        )

        match = await resolver.resolve(
            make_record(customer_name="Nadie Conocido", shipping_address="Carrera 70 # 44-21 Laureles Estadio")
        )

        assert match.order_number == "A-1"
        assert match.matched_by == MatchTier.ADDRESS
        assert match.confidence == 60

    async def test_phone_miss_falls_through_to_name(self, resolver, add_orders):
        await add_orders({"order_number": "N-3", "customer_name": "Lucía Rojas"})
        match = await resolver.resolve(
            make_record(customer_phone="573009999999", customer_name="Lucía Rojas")
        )
        assert match.matched_by == MatchTier.NAME

    async def test_no_fields_no_match(self, resolver, add_orders):
        await add_orders({"order_number": "X", "phone_number": "3001234567"})
        assert await resolver.resolve(make_record()) is None

    async def test_like_wildcards_are_literal(self, resolver, add_orders):
        """A '%' in the input does not act as a wildcard."""
        await add_orders({"order_number": "W-1", "customer_name": "Ana María"})
        assert await resolver.resolve(make_record(customer_name="% Ana")) is None


class TestMarkShipped:
    """Tests for tracking write-back."""

    async def test_updates_order(self, resolver, add_orders, session_factory):
        await add_orders({"order_number": "ORD-9", "phone_number": "3001234567"})

        assert await resolver.mark_shipped("ORD-9", "SV123456789", "Servientrega") is True

        async with session_scope(session_factory) as session:
            order = (
                await session.execute(select(OrderORM).where(OrderORM.order_number == "ORD-9"))
            ).scalar_one()
        assert order.tracking_number == "SV123456789"
        assert order.carrier == "Servientrega"
        assert order.shipping_status == "shipped"
        assert order.shipped_at is not None

    async def test_shipped_order_no_longer_matches(self, resolver, add_orders):
        await add_orders({"order_number": "ORD-9", "phone_number": "3001234567"})
        await resolver.mark_shipped("ORD-9", "SV123456789", "Servientrega")
        assert await resolver.resolve(make_record(customer_phone="573001234567")) is None

    async def test_missing_order_returns_false(self, resolver, db_engine):
        assert await resolver.mark_shipped("NOPE", "SV1", "TCC") is False


class TestStoreUnavailable:
    """Unreachable stores are distinct from 'no match'."""

    @pytest.fixture
    async def broken_resolver(self, tmp_path):
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'orders.db'}")
        yield CustomerResolver(create_session_factory(engine))
        await close_db(engine)

    async def test_resolve_raises(self, broken_resolver):
        with pytest.raises(StoreUnavailableError):
            await broken_resolver.resolve(make_record(customer_phone="573001234567"))

    async def test_mark_shipped_raises(self, broken_resolver):
        with pytest.raises(StoreUnavailableError):
            await broken_resolver.mark_shipped("ORD-1", "SV1", "TCC")


class TestAccentInsensitiveMatching:
    """Typed addresses and names often drop accents; matching ignores them."""

    async def test_accented_city_matches_plain_address(self, resolver, add_orders):
        await add_orders(
            {"order_number": "B-1", "customer_name": "Juan Perez",
             "shipping_address": "Calle 10 # 5-20, Bogota"}
        )

        match = await resolver.resolve(make_record(customer_name="Juan Pérez", city="Bogotá"))

        assert match.order_number == "B-1"
        assert match.matched_by == MatchTier.NAME

    async def test_plain_name_matches_accented_upper_case_name(self, resolver, add_orders):
        await add_orders({"order_number": "B-2", "customer_name": "ÁNGELA MUÑOZ"})
        match = await resolver.resolve(make_record(customer_name="Angela Munoz"))
        assert match.order_number == "B-2"

    async def test_address_fragment_ignores_accents(self, resolver, add_orders):
        await add_orders(
            {"order_number": "B-3", "customer_name": "Otra Persona",
             "shipping_address": "Avenida Simón Bolívar # 20-30, Ibagué"}
        )

        match = await resolver.resolve(
            make_record(customer_name="Nadie Conocido", shipping_address="avenida simon bolivar # 20-30")
        )

        assert match.order_number == "B-3"
        assert match.matched_by == MatchTier.ADDRESS
