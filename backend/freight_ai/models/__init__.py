"""Pydantic models for queries and results."""

from .queries import (
    AirRateQuery,
    Domain,
    FacilityQuery,
    LocalChargesQuery,
    Query,
    SeaRateQuery,
)
from .results import (
    AirRate,
    Facility,
    GroundingSource,
    LocalCharge,
    ResultItem,
    SeaRate,
    VerificationResult,
)

__all__ = [
    "AirRateQuery",
    "Domain",
    "FacilityQuery",
    "LocalChargesQuery",
    "Query",
    "SeaRateQuery",
    "AirRate",
    "Facility",
    "GroundingSource",
    "LocalCharge",
    "ResultItem",
    "SeaRate",
    "VerificationResult",
]
