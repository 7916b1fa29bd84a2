"""
Circuit Breaker for the Steam detail endpoint.

Implements the classic circuit breaker pattern with three states:
- CLOSED: Normal operation, requests pass through
- OPEN: Upstream is throttling, all requests are short-circuited
- HALF_OPEN: Cool-down elapsed, a single trial request is let through

Rate-limit answers (403/429) must not be retried aggressively, so callers
report them straight to the breaker. Transient errors are retried by the
caller first and only reported here once the retry budget is spent.

Usage:
    breaker = CircuitBreaker("steam-appdetails")

    if breaker.allow():
        try:
            payload = await client.get_app_details(app_id)
            breaker.on_success()
        except RateLimited:
            breaker.on_failure(FailureKind.RATE_LIMITED)
    else:
        ...  # skip the call entirely
"""

import time
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Throttled, reject all requests
    HALF_OPEN = "half_open"  # Testing recovery with one trial call


class FailureKind(Enum):
    """Why a guarded call failed."""
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    OTHER = "other"


@dataclass
class CircuitBreakerConfig:
    """Configuration for a circuit breaker."""
    failure_threshold: int = 5       # Consecutive failures before opening
    recovery_timeout: float = 300.0  # Seconds before the half-open trial
    half_open_max_calls: int = 1     # Trial calls allowed while half-open


@dataclass(frozen=True)
class CircuitBreakerState:
    """Point-in-time view of the breaker."""
    status: CircuitState
    consecutive_failures: int
    reopen_at: float


@dataclass
class CircuitStats:
    """Statistics for a circuit breaker."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    rejected_requests: int = 0  # Rejected due to open circuit
    rate_limited_failures: int = 0
    consecutive_failures: int = 0
    last_failure_time: float = 0.0
    last_success_time: float = 0.0
    state_changes: int = 0
    time_in_open: float = 0.0


class CircuitBreaker:
    """
    Circuit breaker for a single upstream dependency.

    State transitions:
    - CLOSED -> OPEN: After failure_threshold consecutive failures
    - OPEN -> HALF_OPEN: Once reopen_at has passed
    - HALF_OPEN -> CLOSED: On trial success (failure count reset)
    - HALF_OPEN -> OPEN: On trial failure (reopen_at pushed out again)

    Every read-check-then-write happens under one lock so overlapping
    enrichment batches see consistent transitions.
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._stats = CircuitStats()
        self._lock = threading.Lock()
        self._opened_at: float = 0.0
        self._reopen_at: float = 0.0
        self._half_open_calls: int = 0

    def _refresh(self) -> None:
        """Move OPEN -> HALF_OPEN when the cool-down is over (must hold lock)."""
        if self._state == CircuitState.OPEN and self._clock() >= self._reopen_at:
            self._transition_to(CircuitState.HALF_OPEN)

    @property
    def state(self) -> CircuitState:
        """Get current state, automatically transitioning OPEN -> HALF_OPEN if due."""
        with self._lock:
            self._refresh()
            return self._state

    @property
    def stats(self) -> CircuitStats:
        return self._stats

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    @property
    def retry_after(self) -> float:
        """Seconds until the circuit allows a trial call."""
        with self._lock:
            if self._state != CircuitState.OPEN:
                return 0.0
            return max(0.0, self._reopen_at - self._clock())

    def snapshot(self) -> CircuitBreakerState:
        with self._lock:
            self._refresh()
            return CircuitBreakerState(
                status=self._state,
                consecutive_failures=self._stats.consecutive_failures,
                reopen_at=self._reopen_at
            )

    def allow(self) -> bool:
        """
        Check whether a call may be issued.

        Returns True if:
        - Circuit is CLOSED
        - Circuit is HALF_OPEN and the trial slot is still free
        """
        with self._lock:
            self._refresh()

            if self._state == CircuitState.CLOSED:
                return True

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls < self.config.half_open_max_calls:
                    self._half_open_calls += 1
                    return True

            self._stats.rejected_requests += 1
            return False

    def on_success(self) -> None:
        """Record a successful call."""
        with self._lock:
            self._stats.total_requests += 1
            self._stats.successful_requests += 1
            self._stats.consecutive_failures = 0
            self._stats.last_success_time = self._clock()

            if self._state == CircuitState.HALF_OPEN:
                self._transition_to(CircuitState.CLOSED)

    def on_failure(self, kind: FailureKind = FailureKind.OTHER) -> None:
        """Record a failed call."""
        with self._lock:
            self._stats.total_requests += 1
            self._stats.failed_requests += 1
            self._stats.consecutive_failures += 1
            self._stats.last_failure_time = self._clock()
            if kind == FailureKind.RATE_LIMITED:
                self._stats.rate_limited_failures += 1

            if self._state == CircuitState.HALF_OPEN:
                # Trial failed, back to a full cool-down
                self._transition_to(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED:
                if self._stats.consecutive_failures >= self.config.failure_threshold:
                    self._transition_to(CircuitState.OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        """Transition to a new state (must hold lock)."""
        old_state = self._state
        if old_state == new_state:
            return

        now = self._clock()
        self._state = new_state
        self._stats.state_changes += 1
        if new_state == CircuitState.OPEN:
            logger.warning(f"Circuit {self.name}: {old_state.value} -> open for {self.config.recovery_timeout:.0f}s")
        else:
            logger.info(f"Circuit {self.name}: {old_state.value} -> {new_state.value}")

        if new_state == CircuitState.OPEN:
            self._opened_at = now
            self._reopen_at = now + self.config.recovery_timeout
            self._half_open_calls = 0
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_calls = 0
            self._stats.time_in_open += now - self._opened_at
        elif new_state == CircuitState.CLOSED:
            self._stats.consecutive_failures = 0
            self._half_open_calls = 0
            self._reopen_at = 0.0

    def get_status(self) -> Dict[str, Any]:
        """Get circuit breaker status as dictionary."""
        state = self.snapshot()
        return {
            "name": self.name,
            "state": state.status.value,
            "retry_after": round(self.retry_after, 1),
            "stats": {
                "total_requests": self._stats.total_requests,
                "successful": self._stats.successful_requests,
                "failed": self._stats.failed_requests,
                "rejected": self._stats.rejected_requests,
                "rate_limited": self._stats.rate_limited_failures,
                "consecutive_failures": state.consecutive_failures,
                "state_changes": self._stats.state_changes,
                "time_in_open_seconds": round(self._stats.time_in_open, 1)
            },
            "config": {
                "failure_threshold": self.config.failure_threshold,
                "recovery_timeout": self.config.recovery_timeout
            }
        }
