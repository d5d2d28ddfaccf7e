"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from shipnotify.storage import (
    OrderORM,
    close_db,
    create_engine,
    create_session_factory,
    init_db,
    session_scope,
)

SERVIENTREGA_GUIDE = (
    "SERVIENTREGA\n"
    "Guía: SV123456789\n"
    "Destinatario: Juan Pérez\n"
    "Teléfono: 3001234567\n"
    "Ciudad: Bogotá"
)

CHAT_SCREENSHOT = (
    "+57 312 799 6451\n"
    "Hola buenas tardes 10:42 a. m.\n"
    "Nombre: María Fernanda Gómez\n"
    "Dirección: Calle 45 # 12-30 apto 301\n"
    "Barrio: Chapinero\n"
    "Ciudad: Medellín\n"
    "Cédula: 1023456789\n"
    "Gracias ✓✓"
)

BASE_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def guide_text():
    """Plain Servientrega guide text."""
    return SERVIENTREGA_GUIDE


@pytest.fixture
def chat_text():
    """OCR text of a customer chat screenshot."""
    return CHAT_SCREENSHOT


@pytest.fixture
def guide_file(tmp_path):
    """A throwaway guide PDF on disk."""
    path = tmp_path / "guia.pdf"
    path.write_bytes(b"%PDF-1.4\n%fake guide\n")
    return path


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite order store with the orders table created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the test store."""
    return create_session_factory(db_engine)


@pytest.fixture
def add_orders(session_factory):
    """Insert orders; ``age_minutes`` sets how long ago each was created."""

    async def _add(*orders: dict) -> None:
        async with session_scope(session_factory) as session:
            for fields in orders:
                fields = dict(fields)
                age = fields.pop("age_minutes", 0)
                fields.setdefault("processing_status", "confirmed")
                fields.setdefault("created_at", BASE_TIME - timedelta(minutes=age))
                session.add(OrderORM(**fields))

    return _add


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recorded_sleeps():
    """Async sleep replacement that records requested durations."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep
