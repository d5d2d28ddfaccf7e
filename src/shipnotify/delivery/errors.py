"""Tagged delivery failures and the retry classifier."""

from enum import Enum
from typing import Optional

import httpx

# HTTP statuses below 500 that are still worth retrying
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


class FailureKind(str, Enum):
    """Class of a delivery failure."""

    NETWORK = "network"  # refused/reset/timeout/DNS
    HTTP_STATUS = "http_status"  # gateway answered with an error status
    APPLICATION = "application"  # gateway or local fault that retrying cannot fix
    CIRCUIT_OPEN = "circuit_open"  # refused locally by the breaker


class DeliveryError(Exception):
    """A delivery operation failed."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"DeliveryError(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


def classify_exception(exc: BaseException) -> DeliveryError:
    """Map a raised exception onto a tagged delivery failure.

    Args:
        exc: Exception raised while talking to the gateway.

    Returns:
        DeliveryError carrying the failure kind.
    """
    if isinstance(exc, DeliveryError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return DeliveryError(
            FailureKind.HTTP_STATUS,
            f"Gateway responded {status}",
            status_code=status,
        )
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return DeliveryError(FailureKind.NETWORK, str(exc) or type(exc).__name__)
    if isinstance(exc, OSError):
        return DeliveryError(FailureKind.APPLICATION, f"Cannot read attachment: {exc}")
    return DeliveryError(FailureKind.APPLICATION, str(exc) or type(exc).__name__)


def is_retryable(error: DeliveryError) -> bool:
    """Decide whether another attempt can help."""
    if error.kind == FailureKind.NETWORK:
        return True
    if error.kind == FailureKind.HTTP_STATUS and error.status_code is not None:
        return error.status_code >= 500 or error.status_code in RETRYABLE_CLIENT_STATUSES
    return False
