"""
Scope fan-out orchestration.

Responsibilities:
- Split a query into scope slices (one per child area for broad scopes)
- Run slices strictly one after another, pausing between them
- Absorb per-slice failures: a bad slice degrades the result, it does not abort it
- Merge and deduplicate by natural key (last write wins, first position kept)
- Refuse to present an empty merge as "zero matches"

NON-responsibilities:
- Does NOT retry slices (the executor already retried each call)
- Does NOT keep results after returning them
"""
import asyncio
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from freight_ai.core.config import Settings, get_settings
from freight_ai.core.logging import get_logger
from freight_ai.core.metrics import record_fanout_result, record_slice_outcome
from freight_ai.models.queries import Domain, Query
from freight_ai.models.results import ResultItem
from freight_ai.services.ai.executor import ModelCallError, ResilientCallExecutor, get_call_executor
from freight_ai.services.ai.llm_client import GenerationConfig, ModelRequest
from freight_ai.services.ai.normalizer import MalformedResponseError, NormalizationContext, normalize
from freight_ai.services.ai.prompts import build_prompt
from freight_ai.services.ai.slicing import ScopeSlice, enumerate_slices

logger = get_logger(__name__)

NO_DATA_MESSAGE = "No data received from the AI service. Please try again in a moment."


class OrchestrationError(Exception):
    """
    Every slice of a fan-out failed or returned nothing.

    `user_message` is safe to show to end users; `failed_slices` and the
    exception text are diagnostics.
    """

    def __init__(self, message: str, domain: Domain, failed_slices: Optional[List[str]] = None):
        super().__init__(message)
        self.user_message = NO_DATA_MESSAGE
        self.domain = domain
        self.failed_slices = failed_slices or []


def dedupe_by_key(items: Iterable[ResultItem]) -> List[ResultItem]:
    """
    Deduplicate by natural key.

    A later duplicate replaces the earlier item's values but keeps the
    position where the key first appeared.
    """
    merged: Dict[object, ResultItem] = {}
    for item in items:
        merged[item.natural_key()] = item
    return list(merged.values())


class FanOutOrchestrator:
    """Runs a query's slices sequentially and merges what comes back."""

    def __init__(
        self,
        executor: ResilientCallExecutor,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self._executor = executor
        self._sleep = sleep

    def build_request(self, query: Query, scope: ScopeSlice) -> ModelRequest:
        return ModelRequest(
            model=self.settings.model,
            contents=build_prompt(query, scope),
            config=GenerationConfig(
                force_json_output=True,
                reasoning_budget=self.settings.reasoning_budget,
            ),
        )

    async def run_slice(self, query: Query, scope: ScopeSlice) -> List[ResultItem]:
        """
        One slice: prompt -> model call -> normalized items.

        Raises:
            ModelCallError: the call failed terminally
            MalformedResponseError: the answer holds no JSON array
        """
        response = await self._executor.execute(self.build_request(query, scope))
        context = NormalizationContext(query=query, sources=tuple(response.sources))
        return normalize(response.text, context)

    async def run(self, query: Query) -> List[ResultItem]:
        """
        Fan out over the query's slices and merge the results.

        Raises:
            OrchestrationError: no slice produced any item
        """
        slices = enumerate_slices(query)
        domain = query.domain.value
        pacing = self.settings.slice_pacing_seconds

        logger.info("fanout_started", domain=domain, slice_count=len(slices))

        collected: List[ResultItem] = []
        failed: List[str] = []
        for position, scope in enumerate(slices):
            if position > 0 and pacing > 0:
                await self._sleep(pacing)

            try:
                items = await self.run_slice(query, scope)
            except ModelCallError as exc:
                record_slice_outcome(domain, "model_error")
                failed.append(scope.label)
                logger.warning(
                    "fanout_slice_failed",
                    domain=domain,
                    slice=scope.label,
                    reason="model_error",
                    attempts=exc.attempts,
                    error=str(exc),
                )
                continue
            except MalformedResponseError as exc:
                record_slice_outcome(domain, "malformed")
                failed.append(scope.label)
                logger.warning(
                    "fanout_slice_failed",
                    domain=domain,
                    slice=scope.label,
                    reason="malformed_response",
                    raw_excerpt=exc.raw_excerpt,
                )
                continue

            record_slice_outcome(domain, "success")
            logger.info(
                "fanout_slice_completed",
                domain=domain,
                slice=scope.label,
                items=len(items),
            )
            collected.extend(items)

        merged = dedupe_by_key(collected)
        record_fanout_result(domain, len(merged))

        if not merged:
            logger.error(
                "fanout_no_data",
                domain=domain,
                slice_count=len(slices),
                failed_slices=failed,
            )
            raise OrchestrationError(
                f"No data received for {domain}: {len(failed)} of {len(slices)} slices failed",
                domain=query.domain,
                failed_slices=failed,
            )

        logger.info(
            "fanout_completed",
            domain=domain,
            slice_count=len(slices),
            failed_slices=len(failed),
            collected=len(collected),
            items=len(merged),
        )
        return merged


_orchestrator: Optional[FanOutOrchestrator] = None


def get_fanout_orchestrator() -> FanOutOrchestrator:
    """Global singleton accessor for the fan-out orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = FanOutOrchestrator(get_call_executor())
    return _orchestrator
