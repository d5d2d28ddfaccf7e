"""Matching Stage - Resolve a shipment record to a pending order.

Tiers are tried in strict order and the first hit wins:

1. phone   - last 10 digits of the customer phone       (confidence 100)
2. name    - first token of the name, optional city      (confidence 80)
3. address - first 30 characters of the address          (confidence 60)

Only confirmed/processing orders without a tracking number are eligible,
newest first. Name, city and address comparisons ignore case and accents.
A store that cannot be reached raises StoreUnavailableError,
which is not the same thing as finding no match.
"""

import logging
import re
from typing import Optional

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shipnotify.models import CustomerMatch, MatchTier, OrderRecord, ShipmentRecord
from shipnotify.storage import OrderRepository, session_scope
from shipnotify.utils.logging import mask_phone

from .matching import strip_accents

logger = logging.getLogger(__name__)

PHONE_MATCH_DIGITS = 10
ADDRESS_MATCH_CHARS = 30

# Faults that mean "could not talk to the store", as opposed to bad SQL
STORE_CONNECTIVITY_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, OSError)


class StoreUnavailableError(Exception):
    """The order store could not be reached; try again later."""


class CustomerResolver:
    """Finds the pending order a shipping guide belongs to."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize resolver.

        Args:
            session_factory: Factory for sessions on the order store.
        """
        self.session_factory = session_factory

    async def resolve(self, record: ShipmentRecord) -> Optional[CustomerMatch]:
        """Match ``record`` against eligible orders.

        Args:
            record: Extracted shipment record.

        Returns:
            CustomerMatch from the first tier that hits, or None.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        try:
            async with session_scope(self.session_factory) as session:
                repo = OrderRepository(session)
                match = await self._resolve(repo, record)
        except STORE_CONNECTIVITY_ERRORS as exc:
            logger.error("Order store unavailable: %s", exc, extra={"event": "store_unavailable"})
            raise StoreUnavailableError(str(exc)) from exc

        if match is None:
            logger.info(
                "No eligible order matched",
                extra={"event": "match_none", "tracking_number": record.tracking_number},
            )
        else:
            logger.info(
                "Matched order %s by %s",
                match.order_number,
                match.matched_by.value,
                extra={"event": "match_found", "order_number": match.order_number,
                       "matched_by": match.matched_by.value, "confidence": match.confidence,
                       "phone": mask_phone(match.phone)},
            )
        return match

    async def _resolve(
        self, repo: OrderRepository, record: ShipmentRecord
    ) -> Optional[CustomerMatch]:
        if record.customer_phone:
            digits = re.sub(r"\D", "", record.customer_phone)[-PHONE_MATCH_DIGITS:]
            if digits:
                order = await repo.find_eligible_by_phone(digits)
                if order is not None:
                    return self._to_match(order, MatchTier.PHONE)

        if record.customer_name:
            tokens = strip_accents(record.customer_name).split()
            if tokens:
                city = strip_accents(record.city) if record.city else None
                order = await repo.find_eligible_by_name(tokens[0], city)
                if order is not None:
                    return self._to_match(order, MatchTier.NAME)

        if record.shipping_address:
            fragment = strip_accents(record.shipping_address)[:ADDRESS_MATCH_CHARS]
            order = await repo.find_eligible_by_address(fragment)
            if order is not None:
                return self._to_match(order, MatchTier.ADDRESS)

        return None

    @staticmethod
    def _to_match(order, tier: MatchTier) -> CustomerMatch:
        return CustomerMatch.from_order(OrderRecord.model_validate(order), tier)

    async def mark_shipped(
        self, order_number: str, tracking_number: str, carrier: str
    ) -> bool:
        """Write the tracking number back onto an order.

        Returns:
            True if the order row was updated; False if it no longer exists.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        try:
            async with session_scope(self.session_factory) as session:
                updated = await OrderRepository(session).mark_shipped(
                    order_number, tracking_number, carrier
                )
        except STORE_CONNECTIVITY_ERRORS as exc:
            logger.error("Order store unavailable: %s", exc, extra={"event": "store_unavailable"})
            raise StoreUnavailableError(str(exc)) from exc

        if updated:
            logger.info(
                "Order %s marked shipped",
                order_number,
                extra={"event": "order_shipped", "order_number": order_number,
                       "tracking_number": tracking_number, "carrier": carrier},
            )
        else:
            logger.warning(
                "Order %s not found for tracking update",
                order_number,
                extra={"event": "order_missing", "order_number": order_number},
            )
        return updated
