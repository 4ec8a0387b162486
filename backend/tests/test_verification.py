"""
Unit tests for maps-grounded verification.

Tests verify:
- A resolved maps link from grounding metadata is returned as-is
- Without one, a maps search URL for the entity name is used
- Any failure degrades to {"verified": false} and never raises
"""
import pytest

from freight_ai.core.config import Settings
from freight_ai.models.queries import TransportType
from freight_ai.models.results import AirRate, Facility, VerificationResult
from freight_ai.services.ai.executor import ModelCallError
from freight_ai.services.ai.llm_client import ModelResponse
from freight_ai.services.ai.verification import (
    VerificationService,
    build_verification_prompt,
    describe_entity,
    fallback_maps_uri,
)


class StubExecutor:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    async def execute(self, request):
        self.requests.append(request)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def settings():
    return Settings(api_key="test-key", verify_model="gemini-maps-test")


@pytest.fixture
def facility():
    return Facility(
        name="Tanjung Priok",
        code="IDTPP",
        type=TransportType.PORT,
        city="Jakarta",
        country="Indonesia",
    )


@pytest.fixture
def air_rate():
    return AirRate(destination_airport="NRT Tokyo Narita", country="Japan")


def test_describe_facility_skips_unknown_parts(facility):
    assert describe_entity(facility) == "Tanjung Priok (IDTPP) in Jakarta, Indonesia"


def test_describe_air_rate(air_rate):
    assert describe_entity(air_rate) == "NRT Tokyo Narita in Japan"


def test_prompt_names_entity_kind(facility, air_rate):
    assert build_verification_prompt(facility).startswith("Locate the port Tanjung Priok")
    assert build_verification_prompt(air_rate).startswith("Locate the airport NRT Tokyo Narita")


def test_fallback_uri_is_encoded():
    assert fallback_maps_uri("Tanjung Priok & Co") == (
        "https://www.google.com/maps/search/?api=1&query=Tanjung%20Priok%20%26%20Co"
    )


@pytest.mark.asyncio
async def test_resolved_maps_uri_is_used(settings, facility):
    executor = StubExecutor(ModelResponse(text="Found it.", maps_uri="https://maps.google.com/?cid=42"))
    service = VerificationService(executor, settings)

    result = await service.verify_facility(facility)

    assert result.verified is True
    assert result.maps_uri == "https://maps.google.com/?cid=42"

    request = executor.requests[0]
    assert request.model == "gemini-maps-test"
    assert request.config.maps_grounding
    assert not request.config.force_json_output


@pytest.mark.asyncio
async def test_fallback_uri_when_nothing_resolved(settings, air_rate):
    service = VerificationService(StubExecutor(ModelResponse(text="It is in Chiba.")), settings)

    result = await service.verify_air_rate(air_rate)

    assert result.verified is True
    assert result.maps_uri == fallback_maps_uri("NRT Tokyo Narita")


@pytest.mark.asyncio
async def test_failure_reports_unverified(settings, facility):
    service = VerificationService(StubExecutor(ModelCallError("quota", attempts=3, retryable=True)), settings)

    result = await service.verify_facility(facility)

    assert result.model_dump(exclude_none=True) == {"verified": False}


@pytest.mark.asyncio
async def test_unexpected_error_reports_unverified(settings, facility):
    service = VerificationService(StubExecutor(RuntimeError("boom")), settings)

    result = await service.verify(facility)

    assert result.verified is False
    assert result.maps_uri is None


def test_result_serialises_camel_case():
    result = VerificationResult(verified=True, maps_uri="https://maps.google.com/?cid=1")

    assert result.model_dump(by_alias=True) == {"verified": True, "mapsUri": "https://maps.google.com/?cid=1"}
