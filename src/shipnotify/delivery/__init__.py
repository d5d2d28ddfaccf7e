"""Notification delivery with retry and circuit breaking."""

from .breaker import (
    BreakerConfig,
    BreakerEvent,
    BreakerEventKind,
    BreakerState,
    CircuitBreaker,
    permits,
    transition,
)
from .client import DeliveryClient, format_message, format_phone
from .errors import DeliveryError, FailureKind, classify_exception, is_retryable
from .retry import RetryPolicy, retry_call

__all__ = [
    # Breaker
    "BreakerConfig",
    "BreakerEvent",
    "BreakerEventKind",
    "BreakerState",
    "CircuitBreaker",
    "permits",
    "transition",
    # Retry
    "RetryPolicy",
    "retry_call",
    # Errors
    "DeliveryError",
    "FailureKind",
    "classify_exception",
    "is_retryable",
    # Client
    "DeliveryClient",
    "format_message",
    "format_phone",
]
