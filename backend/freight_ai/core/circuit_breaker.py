"""
Circuit breaker for the model provider.

Opens after `failure_threshold` consecutive failed calls and rejects calls
for `open_duration_seconds`. After that it lets a single probe call through
(half-open): success closes the circuit, failure reopens it.

Exceptions for which `is_failure` returns False propagate unchanged and
count as an answer from the provider, like a success.

The service runs on one event loop, so state is not lock-protected.
"""
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from freight_ai.core.logging import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(Exception):
    """Raised when the circuit is open and the call is rejected without being made."""


class CircuitBreaker:
    """Consecutive-failure circuit breaker for async callables."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        open_duration_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        is_failure: Callable[[BaseException], bool] = lambda exc: True,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.open_duration_seconds = open_duration_seconds
        self._clock = clock
        self._is_failure = is_failure

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        if (
            self._state == CircuitState.OPEN
            and self._opened_at is not None
            and self._clock() - self._opened_at >= self.open_duration_seconds
        ):
            self._state = CircuitState.HALF_OPEN
            self._probe_in_flight = False
            logger.info("circuit_breaker_half_open", circuit_breaker=self.name)
        return self._state

    def _on_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info("circuit_breaker_closed", circuit_breaker=self.name)
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None
        self._probe_in_flight = False

    def _on_failure(self) -> None:
        self._consecutive_failures += 1
        self._probe_in_flight = False
        if (
            self._state == CircuitState.HALF_OPEN
            or self._consecutive_failures >= self.failure_threshold
        ):
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning(
                "circuit_breaker_opened",
                circuit_breaker=self.name,
                consecutive_failures=self._consecutive_failures,
            )

    async def call_async(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Await `func(*args, **kwargs)` under breaker protection.

        Raises:
            CircuitBreakerOpenError: circuit open, or a half-open probe is already running
        """
        state = self.state
        if state == CircuitState.OPEN:
            raise CircuitBreakerOpenError(
                f"Circuit breaker {self.name} is OPEN. Provider unavailable."
            )
        if state == CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                raise CircuitBreakerOpenError(
                    f"Circuit breaker {self.name} is HALF_OPEN. Probe already in flight."
                )
            self._probe_in_flight = True

        try:
            result = await func(*args, **kwargs)
        except Exception as exc:
            if self._is_failure(exc):
                self._on_failure()
            else:
                self._on_success()
            raise
        self._on_success()
        return result

    def get_metrics(self) -> dict:
        state = self.state
        return {
            "name": self.name,
            "state": state.value,
            "consecutive_failures": self._consecutive_failures,
            "opened_at": self._opened_at,
        }
