"""
Caller-facing entry points.

Four fan-out flows (facilities, sea rates, air rates, local charges) and two
verification flows. The fan-out flows return a deduplicated result list or
raise OrchestrationError; the verification flows always return a partial
update.
"""
from typing import List, Optional, cast

from freight_ai.models.queries import AirRateQuery, FacilityQuery, LocalChargesQuery, SeaRateQuery
from freight_ai.models.results import AirRate, Facility, LocalCharge, SeaRate, VerificationResult
from freight_ai.services.ai.orchestration import FanOutOrchestrator, get_fanout_orchestrator
from freight_ai.services.ai.verification import VerificationService, get_verification_service


class LogisticsService:
    def __init__(self, orchestrator: FanOutOrchestrator, verifier: VerificationService):
        self._orchestrator = orchestrator
        self._verifier = verifier

    async def extract_facilities(self, query: FacilityQuery) -> List[Facility]:
        """Seaports and airports in the query's scope, unique by code."""
        return cast(List[Facility], await self._orchestrator.run(query))

    async def fetch_sea_rates(self, query: SeaRateQuery) -> List[SeaRate]:
        return cast(List[SeaRate], await self._orchestrator.run(query))

    async def fetch_air_rates(self, query: AirRateQuery) -> List[AirRate]:
        return cast(List[AirRate], await self._orchestrator.run(query))

    async def analyze_local_charges(self, query: LocalChargesQuery) -> List[LocalCharge]:
        return cast(List[LocalCharge], await self._orchestrator.run(query))

    async def verify_facility(self, item: Facility) -> VerificationResult:
        return await self._verifier.verify_facility(item)

    async def verify_air_rate(self, item: AirRate) -> VerificationResult:
        return await self._verifier.verify_air_rate(item)


_logistics_service: Optional[LogisticsService] = None


def get_logistics_service() -> LogisticsService:
    """Global singleton accessor."""
    global _logistics_service
    if _logistics_service is None:
        _logistics_service = LogisticsService(
            orchestrator=get_fanout_orchestrator(),
            verifier=get_verification_service(),
        )
    return _logistics_service
