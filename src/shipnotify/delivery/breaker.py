"""Circuit breaker guarding the messaging gateway.

The breaker is a small state machine. ``transition`` is a pure function
over ``(state, event)``; ``CircuitBreaker`` owns one state per delivery
client and applies events as calls are requested and finish.

Rules:
- CLOSED -> OPEN once a failure brings the counter to ``failure_threshold``
- OPEN -> HALF_OPEN on the first request after ``reset_timeout_ms``
- OPEN before the timeout: request refused, nothing recorded
- HALF_OPEN -> CLOSED when the trial succeeds (counter reset)
- HALF_OPEN -> OPEN when the trial fails
- CLOSED -> CLOSED on success (counter reset)
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from shipnotify.models import CircuitState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreakerConfig:
    """Breaker thresholds."""

    failure_threshold: int = 5
    reset_timeout_ms: int = 30000

    def __post_init__(self):
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.reset_timeout_ms < 0:
            raise ValueError("reset_timeout_ms must be >= 0")


@dataclass(frozen=True)
class BreakerState:
    """Snapshot of the breaker."""

    circuit: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    last_failure_at: Optional[float] = None  # seconds, monotonic clock


class BreakerEventKind(str, Enum):
    REQUEST = "request"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class BreakerEvent:
    kind: BreakerEventKind
    at: float  # seconds, monotonic clock


def transition(state: BreakerState, event: BreakerEvent, config: BreakerConfig) -> BreakerState:
    """Apply one event to a breaker state.

    Args:
        state: Current state.
        event: What happened, and when.
        config: Thresholds.

    Returns:
        The next state. ``state`` itself is never modified.
    """
    if event.kind == BreakerEventKind.REQUEST:
        if state.circuit == CircuitState.OPEN and _timeout_elapsed(state, event.at, config):
            return replace(state, circuit=CircuitState.HALF_OPEN)
        return state

    if event.kind == BreakerEventKind.SUCCESS:
        return BreakerState(circuit=CircuitState.CLOSED, failure_count=0, last_failure_at=state.last_failure_at)

    # Failure
    failures = state.failure_count + 1
    if state.circuit == CircuitState.HALF_OPEN or failures >= config.failure_threshold:
        circuit = CircuitState.OPEN
    else:
        circuit = state.circuit
    return BreakerState(circuit=circuit, failure_count=failures, last_failure_at=event.at)


def permits(before: BreakerState, after: BreakerState) -> bool:
    """Whether a request that moved the breaker from ``before`` to ``after`` may go out.

    CLOSED lets everything through; HALF_OPEN only admits the request that
    opened it (the single trial).
    """
    if after.circuit == CircuitState.CLOSED:
        return True
    return before.circuit == CircuitState.OPEN and after.circuit == CircuitState.HALF_OPEN


def _timeout_elapsed(state: BreakerState, now: float, config: BreakerConfig) -> bool:
    if state.last_failure_at is None:
        return True
    return (now - state.last_failure_at) * 1000.0 >= config.reset_timeout_ms


class CircuitBreaker:
    """Process-local breaker owned by one delivery client.

    Not locked; concurrent callers race on the counter.
    """

    def __init__(
        self,
        config: Optional[BreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or BreakerConfig()
        self._clock = clock
        self.state = BreakerState()

    @property
    def circuit(self) -> CircuitState:
        return self.state.circuit

    @property
    def failure_count(self) -> int:
        return self.state.failure_count

    def allow_request(self) -> bool:
        """Ask to send one request; may move OPEN to HALF_OPEN."""
        before = self.state
        self._apply(BreakerEventKind.REQUEST)
        allowed = permits(before, self.state)
        if not allowed:
            logger.warning(
                "Circuit %s, request refused",
                self.state.circuit.value,
                extra={"event": "circuit_rejected", "circuit_state": self.state.circuit.value,
                       "failure_count": self.state.failure_count},
            )
        return allowed

    def record_success(self) -> None:
        self._apply(BreakerEventKind.SUCCESS)

    def record_failure(self) -> None:
        self._apply(BreakerEventKind.FAILURE)

    def reset(self) -> None:
        """Force the breaker back to CLOSED."""
        self.state = BreakerState()

    def _apply(self, kind: BreakerEventKind) -> None:
        before = self.state
        self.state = transition(before, BreakerEvent(kind, self._clock()), self.config)
        if before.circuit != self.state.circuit:
            logger.info(
                "Circuit %s -> %s",
                before.circuit.value,
                self.state.circuit.value,
                extra={"event": "circuit_transition", "from_state": before.circuit.value,
                       "circuit_state": self.state.circuit.value,
                       "failure_count": self.state.failure_count},
            )
