"""
Resilient call executor.

Wraps a single model call with bounded retry on rate-limit errors:

- attempt the call; on success return the response unchanged
- rate-limit / quota errors are retried, waiting
  base * 2**attempt + uniform(0, jitter) seconds (attempt is 0-indexed)
- any other error, or running out of attempts, raises ModelCallError

A failed call yields nothing. There is no partial-result salvage.
"""
import asyncio
import random
from typing import Awaitable, Callable, Optional, Protocol

from freight_ai.core.config import Settings, get_settings
from freight_ai.core.logging import get_logger
from freight_ai.core.metrics import record_llm_retry
from freight_ai.services.ai.llm_client import (
    ModelRequest,
    ModelResponse,
    get_model_client,
    is_rate_limited,
)

logger = get_logger(__name__)


class ModelClient(Protocol):
    async def generate(self, request: ModelRequest) -> ModelResponse: ...


class ModelCallError(Exception):
    """A model call failed terminally (non-retryable error or retries exhausted)."""

    def __init__(self, message: str, attempts: int, retryable: bool = False):
        super().__init__(message)
        self.attempts = attempts
        self.retryable = retryable


class ResilientCallExecutor:
    """Retry-with-backoff around a ModelClient."""

    def __init__(
        self,
        client: ModelClient,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        settings = settings or get_settings()
        self._client = client
        self.max_attempts = settings.max_attempts
        self.base_delay = settings.backoff_base_seconds
        self.jitter = settings.backoff_jitter_seconds
        self._sleep = sleep
        self._rng = rng or random.Random()

    def backoff_delay(self, attempt: int) -> float:
        """Wait before retrying after 0-indexed `attempt` failed."""
        return self.base_delay * (2 ** attempt) + self._rng.uniform(0, self.jitter)

    async def execute(self, request: ModelRequest) -> ModelResponse:
        """
        Run `request` with retries.

        Raises:
            ModelCallError: terminal error, or rate-limited on every attempt
        """
        for attempt in range(self.max_attempts):
            try:
                return await self._client.generate(request)
            except Exception as exc:
                retryable = is_rate_limited(exc)
                attempts = attempt + 1
                if not retryable:
                    logger.warning(
                        "model_call_failed",
                        model=request.model,
                        attempts=attempts,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    raise ModelCallError(f"Model call failed: {exc}", attempts=attempts) from exc
                if attempts >= self.max_attempts:
                    logger.warning(
                        "model_call_retries_exhausted",
                        model=request.model,
                        attempts=attempts,
                        error=str(exc),
                    )
                    raise ModelCallError(
                        f"Model call still rate limited after {attempts} attempts: {exc}",
                        attempts=attempts,
                        retryable=True,
                    ) from exc

                delay = self.backoff_delay(attempt)
                record_llm_retry(request.model)
                logger.info(
                    "model_call_retry",
                    model=request.model,
                    attempt=attempts,
                    delay_seconds=round(delay, 3),
                )
                await self._sleep(delay)

        # Unreachable: Settings requires max_attempts >= 1.
        raise ModelCallError("Model call was never attempted", attempts=0)


_executor: Optional[ResilientCallExecutor] = None


def get_call_executor() -> ResilientCallExecutor:
    """Global executor bound to the global provider client."""
    global _executor
    if _executor is None:
        _executor = ResilientCallExecutor(get_model_client())
    return _executor
