"""Orchestrator - Run one shipping document through the whole pipeline.

read text -> classify/extract -> resolve order -> deliver -> write back

The source file is removed at the end no matter how processing went.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from shipnotify.config import Settings
from shipnotify.delivery import DeliveryClient
from shipnotify.models import (
    CustomerMatch,
    HealthStatus,
    ProcessingStatus,
    ProcessResult,
    ShipmentRecord,
)
from shipnotify.storage import close_db, create_engine, create_session_factory
from shipnotify.utils.logging import mask_phone

from .rules import normalize_phone
from .stage_chat import ChatOrderExtractor
from .stage_extract import AlternateFormatError, GuideExtractor
from .stage_match import CustomerResolver, StoreUnavailableError
from .stage_text import DocumentTextSource

logger = logging.getLogger(__name__)


class ShipmentNotifier:
    """Entry point used by the upload route and the folder watcher."""

    def __init__(
        self,
        text_source: DocumentTextSource,
        extractor: GuideExtractor,
        resolver: CustomerResolver,
        delivery: DeliveryClient,
        chat_extractor: Optional[ChatOrderExtractor] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        self.text_source = text_source
        self.extractor = extractor
        self.resolver = resolver
        self.delivery = delivery
        self.chat_extractor = chat_extractor or ChatOrderExtractor()
        self._engine = engine

    async def process_document(
        self, path: Path | str, phone_hint: Optional[str] = None
    ) -> ProcessResult:
        """Process one guide end to end.

        Args:
            path: Guide PDF or label photo.
            phone_hint: Customer phone supplied by the uploader, if any.

        Returns:
            ProcessResult describing the outcome.
        """
        path = Path(path)
        logger.info("Processing guide %s", path.name, extra={"event": "process_start"})
        try:
            return await self._process(path, phone_hint)
        finally:
            self._cleanup(path)

    async def _process(self, path: Path, phone_hint: Optional[str]) -> ProcessResult:
        text = await asyncio.to_thread(self.text_source.read, path)

        try:
            record = self.extractor.extract(text)
        except AlternateFormatError:
            logger.warning(
                "Document %s is a chat screenshot, not a carrier guide",
                path.name,
                extra={"event": "wrong_format"},
            )
            return ProcessResult(
                success=False,
                status=ProcessingStatus.WRONG_FORMAT,
                message="Document is a chat screenshot; use the order intake path",
                chat_order=self.chat_extractor.extract(text),
            )

        if record is None:
            logger.error("Could not parse guide %s", path.name, extra={"event": "unparseable"})
            return ProcessResult(
                success=False,
                status=ProcessingStatus.UNPARSEABLE,
                message="Could not parse guide data",
            )

        if phone_hint and not record.customer_phone:
            record = record.model_copy(update={"customer_phone": normalize_phone(phone_hint)})

        try:
            match = await self.resolver.resolve(record)
        except StoreUnavailableError:
            return ProcessResult(
                success=False,
                status=ProcessingStatus.STORE_UNAVAILABLE,
                message="Order store unavailable, try again later",
                tracking_number=record.tracking_number,
            )

        if match is None:
            self._log_unmatched(record)
            return ProcessResult(
                success=False,
                status=ProcessingStatus.NO_MATCH,
                message="No matching customer found",
                tracking_number=record.tracking_number,
            )

        return await self._deliver(path, record, match, phone_hint)

    async def _deliver(
        self,
        path: Path,
        record: ShipmentRecord,
        match: CustomerMatch,
        phone_hint: Optional[str],
    ) -> ProcessResult:
        recipient = match.phone or phone_hint
        if not recipient:
            logger.error(
                "Order %s has no phone to notify",
                match.order_number,
                extra={"event": "no_recipient", "order_number": match.order_number},
            )
            return ProcessResult(
                success=False,
                status=ProcessingStatus.DELIVERY_FAILED,
                message="Matched order has no phone number",
                tracking_number=record.tracking_number,
                customer_name=match.name,
            )

        sent = await self.delivery.send_guide(recipient, record, path)
        if not sent:
            return ProcessResult(
                success=False,
                status=ProcessingStatus.DELIVERY_FAILED,
                message="Failed to send guide via WhatsApp",
                tracking_number=record.tracking_number,
                customer_name=match.name,
            )

        carrier = getattr(record.carrier, "value", record.carrier)
        try:
            saved = await self.resolver.mark_shipped(
                match.order_number, record.tracking_number, carrier
            )
        except StoreUnavailableError:
            saved = False

        return ProcessResult(
            success=True,
            status=ProcessingStatus.SENT,
            message="Guide sent successfully",
            tracking_number=record.tracking_number,
            customer_name=match.name,
            sent_to=mask_phone(recipient),
            tracking_saved=saved,
        )

    async def health(self) -> HealthStatus:
        """Probe the messaging gateway and report the breaker state."""
        return await self.delivery.check_health()

    async def aclose(self) -> None:
        """Release the gateway client and any engine this notifier owns."""
        await self.delivery.aclose()
        if self._engine is not None:
            await close_db(self._engine)

    @staticmethod
    def _log_unmatched(record: ShipmentRecord) -> None:
        first_name = record.customer_name.split()[0] if record.customer_name else None
        logger.warning(
            "Unmatched guide %s logged for manual review",
            record.tracking_number,
            extra={
                "event": "unmatched_guide",
                "tracking_number": record.tracking_number,
                "customer_first_name": first_name,
                "phone": mask_phone(record.customer_phone),
            },
        )

    @staticmethod
    def _cleanup(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Could not remove %s: %s", path, exc, extra={"event": "cleanup_failed"})


def build_notifier(config: Settings) -> ShipmentNotifier:
    """Wire a notifier from settings."""
    engine = create_engine(config.database_url)
    delivery = DeliveryClient(
        config.whatsapp_api_url,
        config.whatsapp_api_key,
        retry_policy=config.retry_policy(),
        breaker_config=config.breaker_config(),
        timeout=config.whatsapp_timeout_s,
        store_name=config.store_name,
    )
    return ShipmentNotifier(
        text_source=DocumentTextSource(language=config.ocr_language),
        extractor=GuideExtractor(),
        resolver=CustomerResolver(create_session_factory(engine)),
        delivery=delivery,
        engine=engine,
    )
