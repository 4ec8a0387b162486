"""
Maps-grounded verification of a single result item.

One targeted model call asks the maps-grounded model to locate the entity.
The resolved map link comes from grounding metadata; without one, a Google
Maps search URL for the entity's name is used so the caller always has a link.

verify() never raises. Any failure yields VerificationResult(verified=False)
and the caller keeps showing the item as unverified.
"""
from typing import List, Optional, Union
from urllib.parse import quote

from freight_ai.core.config import Settings, get_settings
from freight_ai.core.logging import get_logger
from freight_ai.core.metrics import record_verification
from freight_ai.models.results import NOT_AVAILABLE, AirRate, Facility, VerificationResult
from freight_ai.services.ai.executor import ResilientCallExecutor, get_call_executor
from freight_ai.services.ai.llm_client import GenerationConfig, ModelRequest

logger = get_logger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="

Verifiable = Union[Facility, AirRate]


def fallback_maps_uri(name: str) -> str:
    return MAPS_SEARCH_URL + quote(name, safe="")


def _known(*values: str) -> List[str]:
    return [value for value in values if value and value != NOT_AVAILABLE]


def describe_entity(item: Verifiable) -> str:
    """Name the entity and where it is, from whatever descriptive fields the item has."""
    if isinstance(item, Facility):
        name = f"{item.name} ({item.code})"
        place = _known(item.city, item.region, item.country)
    else:
        name = item.destination_airport
        place = _known(item.country)
    return f"{name} in {', '.join(place)}" if place else name


def build_verification_prompt(item: Verifiable) -> str:
    kind = "airport" if isinstance(item, AirRate) else item.type.value.lower()
    return (
        f"Locate the {kind} {describe_entity(item)}. "
        "Use Google Maps to confirm its exact location."
    )


def _entity_name(item: Verifiable) -> str:
    return item.name if isinstance(item, Facility) else item.destination_airport


class VerificationService:
    """Grounds facilities and air-rate destinations against maps data."""

    def __init__(self, executor: ResilientCallExecutor, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._executor = executor

    async def verify(self, item: Verifiable) -> VerificationResult:
        kind = "facility" if isinstance(item, Facility) else "air_rate"
        request = ModelRequest(
            model=self.settings.verify_model,
            contents=build_verification_prompt(item),
            config=GenerationConfig(maps_grounding=True),
        )

        try:
            response = await self._executor.execute(request)
        except Exception as exc:
            # Degrade to "unverified"; the user can retry from the UI.
            record_verification(kind, "failed")
            logger.warning(
                "verification_failed",
                kind=kind,
                item_id=item.id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return VerificationResult(verified=False)

        if response.maps_uri:
            record_verification(kind, "resolved")
            maps_uri = response.maps_uri
        else:
            record_verification(kind, "fallback")
            maps_uri = fallback_maps_uri(_entity_name(item))

        logger.info(
            "verification_completed",
            kind=kind,
            item_id=item.id,
            resolved=response.maps_uri is not None,
        )
        return VerificationResult(verified=True, maps_uri=maps_uri)

    async def verify_facility(self, item: Facility) -> VerificationResult:
        return await self.verify(item)

    async def verify_air_rate(self, item: AirRate) -> VerificationResult:
        return await self.verify(item)


_verification_service: Optional[VerificationService] = None


def get_verification_service() -> VerificationService:
    """Global singleton accessor."""
    global _verification_service
    if _verification_service is None:
        _verification_service = VerificationService(get_call_executor())
    return _verification_service
