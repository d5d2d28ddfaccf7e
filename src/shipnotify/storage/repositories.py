"""Repository layer for order lookups and tracking write-back."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shipnotify.models import ELIGIBLE_ORDER_STATUSES, OrderStatus

from .orm_models import OrderORM

# Accented letters folded in SQL, matching strip_accents on the Python side.
# Upper-case forms are listed because SQLite lower() only folds ASCII.
ACCENT_FOLDS = (
    ("á", "a"), ("é", "e"), ("í", "i"), ("ó", "o"), ("ú", "u"), ("ü", "u"), ("ñ", "n"),
    ("Á", "a"), ("É", "e"), ("Í", "i"), ("Ó", "o"), ("Ú", "u"), ("Ü", "u"), ("Ñ", "n"),
)


def folded(column):
    """Lower-cased, accent-free form of a text column."""
    expr = func.lower(column)
    for accented, plain in ACCENT_FOLDS:
        expr = func.replace(expr, accented, plain)
    return expr


def _eligible(query: Select) -> Select:
    """Restrict to confirmed/processing orders with no tracking number yet."""
    return (
        query.where(OrderORM.processing_status.in_(ELIGIBLE_ORDER_STATUSES))
        .where(OrderORM.tracking_number.is_(None))
        .order_by(OrderORM.created_at.desc())
        .limit(1)
    )


class OrderRepository:
    """Repository for Order operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _first(self, query: Select) -> Optional[OrderORM]:
        result = await self.session.execute(_eligible(query))
        return result.scalars().first()

    async def find_eligible_by_phone(self, digits: str) -> Optional[OrderORM]:
        """Newest eligible order whose phone or shipping phone contains ``digits``."""
        return await self._first(
            select(OrderORM).where(
                or_(
                    OrderORM.phone_number.contains(digits, autoescape=True),
                    OrderORM.shipping_phone.contains(digits, autoescape=True),
                )
            )
        )

    async def find_eligible_by_name(
        self, name_token: str, city: Optional[str] = None
    ) -> Optional[OrderORM]:
        """Newest eligible order whose customer name contains ``name_token``.

        When ``city`` is given the shipping address must contain it too.
        Both values must already be folded (lower case, no accents).
        """
        query = select(OrderORM).where(
            folded(OrderORM.customer_name).contains(name_token, autoescape=True)
        )
        if city:
            query = query.where(
                folded(OrderORM.shipping_address).contains(city, autoescape=True)
            )
        return await self._first(query)

    async def find_eligible_by_address(self, fragment: str) -> Optional[OrderORM]:
        """Newest eligible order whose address contains the folded ``fragment``."""
        return await self._first(
            select(OrderORM).where(
                folded(OrderORM.shipping_address).contains(fragment, autoescape=True)
            )
        )

    async def mark_shipped(
        self, order_number: str, tracking_number: str, carrier: str
    ) -> bool:
        """Write tracking details onto one order; True if a row changed."""
        now = datetime.now(timezone.utc)
        result = await self.session.execute(
            update(OrderORM)
            .where(OrderORM.order_number == order_number)
            .values(
                tracking_number=tracking_number,
                carrier=carrier,
                shipping_status=OrderStatus.SHIPPED.value,
                shipped_at=now,
                updated_at=now,
            )
        )
        await self.session.flush()
        return result.rowcount > 0
