"""Messaging gateway client that delivers shipping notifications.

Each notification is two gateway operations: a text message, then the
guide document as a media attachment. Both go through the same circuit
breaker and retry independently.
"""

import asyncio
import logging
import mimetypes
import re
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx

from shipnotify.models import CircuitState, HealthStatus, ShipmentRecord
from shipnotify.utils.logging import mask_phone

from .breaker import BreakerConfig, CircuitBreaker
from .errors import DeliveryError, FailureKind
from .retry import RetryPolicy, retry_call

logger = logging.getLogger(__name__)

COUNTRY_CODE = "57"
MEDIA_CAPTION = "Guía de envío"

TEXT_ENDPOINT = "/api/send-message"
MEDIA_ENDPOINT = "/api/send-media"
HEALTH_ENDPOINT = "/health"


def format_phone(phone: str) -> str:
    """Format a phone number for the gateway.

    10-digit national numbers get the country code; numbers that already
    carry it, or have any other length, pass through unchanged.
    """
    digits = re.sub(r"\D", "", phone)
    if digits.startswith(COUNTRY_CODE):
        return digits
    if len(digits) == 10:
        return COUNTRY_CODE + digits
    return digits


def format_message(record: ShipmentRecord, store_name: str = "TechAura") -> str:
    """Render the shipped-order text message."""
    carrier = getattr(record.carrier, "value", record.carrier)
    destination = record.city or "Ver guía adjunta"
    return (
        "🚚 *¡Tu pedido ha sido enviado!*\n"
        "\n"
        f"📦 *Número de guía:* {record.tracking_number}\n"
        f"🏢 *Transportadora:* {carrier}\n"
        f"📍 *Destino:* {destination}\n"
        "\n"
        "Puedes rastrear tu envío en la página de la transportadora.\n"
        "\n"
        f"¡Gracias por tu compra en {store_name}! 🎉\n"
        "\n"
        '_Escribe "rastrear" para ver el estado de tu envío._'
    )


class DeliveryClient:
    """Sends shipping guides to customers through the messaging gateway."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        breaker: Optional[CircuitBreaker] = None,
        breaker_config: Optional[BreakerConfig] = None,
        timeout: float = 30.0,
        store_name: str = "TechAura",
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the delivery client.

        Args:
            api_url: Gateway base URL (scheme and host required).
            api_key: Bearer token sent on every request.
            retry_policy: Per-operation retry policy.
            breaker: Circuit breaker to use; one is created when omitted.
            breaker_config: Thresholds for the created breaker.
            timeout: HTTP timeout in seconds.
            store_name: Store name used in the message body.
            http_client: Pre-configured client (tests pass a mock transport).
            sleep: Awaitable sleep used between retries.
        """
        parsed = urlparse(api_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_url must include scheme and host")

        self.api_url = api_url.rstrip("/")
        self._api_key = api_key
        self.retry_policy = retry_policy or RetryPolicy()
        self.breaker = breaker or CircuitBreaker(breaker_config)
        self.store_name = store_name
        self._sleep = sleep
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self.last_probe_ms: Optional[float] = None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    @staticmethod
    def _check_response(response: httpx.Response) -> None:
        response.raise_for_status()
        try:
            body: Any = response.json()
        except ValueError:
            return
        if isinstance(body, dict) and body.get("success") is False:
            raise DeliveryError(
                FailureKind.APPLICATION,
                str(body.get("error") or body.get("message") or "Gateway rejected the message"),
                status_code=response.status_code,
            )

    async def _post_text(self, phone: str, message: str) -> None:
        response = await self._client.post(
            f"{self.api_url}{TEXT_ENDPOINT}",
            json={"phone": phone, "message": message},
            headers=self._headers(),
        )
        self._check_response(response)

    async def _post_media(self, phone: str, document_path: Path, caption: str) -> None:
        content = document_path.read_bytes()
        mime_type = mimetypes.guess_type(document_path.name)[0] or "application/octet-stream"
        response = await self._client.post(
            f"{self.api_url}{MEDIA_ENDPOINT}",
            data={"phone": phone, "caption": caption},
            files={"file": (document_path.name, content, mime_type)},
            headers=self._headers(),
        )
        self._check_response(response)

    async def _guarded(
        self,
        operation_name: str,
        phone: str,
        operation: Callable[[], Awaitable[None]],
    ) -> bool:
        """Run one gateway operation under the breaker and retry policy.

        An admitted operation records exactly one breaker outcome, even when
        it is cancelled. A refused one records nothing.
        """
        context = {"operation": operation_name, "phone": mask_phone(phone)}

        try:
            if not self.breaker.allow_request():
                raise DeliveryError(FailureKind.CIRCUIT_OPEN, "Circuit open, request refused")
            try:
                await retry_call(
                    operation,
                    self.retry_policy,
                    sleep=self._sleep,
                    log_context=context,
                )
            except DeliveryError:
                self.breaker.record_failure()
                raise
            except BaseException:
                self.breaker.record_failure()
                logger.warning(
                    "Delivery %s interrupted",
                    operation_name,
                    extra={**context, "event": "delivery_interrupted",
                           "circuit_state": self.breaker.circuit.value},
                )
                raise
        except DeliveryError as err:
            logger.error(
                "Delivery %s failed: %s",
                operation_name,
                err.message,
                extra={**context, "event": "delivery_failure", "kind": err.kind.value,
                       "status_code": err.status_code,
                       "circuit_state": self.breaker.circuit.value,
                       "failure_count": self.breaker.failure_count},
            )
            return False

        self.breaker.record_success()
        logger.info(
            "Delivery %s succeeded",
            operation_name,
            extra={**context, "event": "delivery_success",
                   "circuit_state": self.breaker.circuit.value},
        )
        return True

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def send_guide(
        self,
        phone: str,
        record: ShipmentRecord,
        document_path: Path | str,
    ) -> bool:
        """Send the shipped notice and the guide document to a customer.

        Args:
            phone: Customer phone, any common format.
            record: Extracted shipment record.
            document_path: Guide file to attach.

        Returns:
            True only if both the text and the media were delivered.
        """
        formatted = format_phone(phone)
        path = Path(document_path)
        message = format_message(record, self.store_name)

        sent_text = await self._guarded(
            "send_text", formatted, lambda: self._post_text(formatted, message)
        )
        if not sent_text:
            return False

        return await self._guarded(
            "send_media", formatted, lambda: self._post_media(formatted, path, MEDIA_CAPTION)
        )

    async def check_health(self) -> HealthStatus:
        """Probe the gateway once; never counted by the breaker."""
        started = time.perf_counter()
        try:
            response = await self._client.get(
                f"{self.api_url}{HEALTH_ENDPOINT}", headers=self._headers()
            )
        except httpx.HTTPError as exc:
            elapsed = (time.perf_counter() - started) * 1000.0
            self.last_probe_ms = elapsed
            logger.warning(
                "Gateway health probe failed: %s",
                exc,
                extra={"event": "health_probe_failed", "circuit_state": self.breaker.circuit.value},
            )
            return HealthStatus(
                healthy=False,
                message=f"Gateway unreachable: {exc}",
                circuit_state=self.breaker.circuit,
                response_time_ms=elapsed,
            )

        elapsed = (time.perf_counter() - started) * 1000.0
        self.last_probe_ms = elapsed
        healthy = response.status_code < 400
        message = "Gateway reachable" if healthy else f"Gateway responded {response.status_code}"
        if self.breaker.circuit != CircuitState.CLOSED:
            message += f" (circuit {self.breaker.circuit.value})"
        return HealthStatus(
            healthy=healthy,
            message=message,
            circuit_state=self.breaker.circuit,
            response_time_ms=elapsed,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
