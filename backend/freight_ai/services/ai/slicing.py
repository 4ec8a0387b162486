"""
Scope slices: the unit of work of a fan-out.

A broad query ("all regions of Asia", "all destination regions") becomes
one slice per immediate child area; a narrow query becomes exactly one slice.
"""
from dataclasses import dataclass
from typing import List, Union

from freight_ai.data.world_locations import regions_of
from freight_ai.models.queries import (
    AirRateQuery,
    Domain,
    FacilityQuery,
    LocalChargesQuery,
    Query,
    RegionDestination,
    SeaRateQuery,
)


@dataclass(frozen=True)
class ScopeSlice:
    """
    One fully-scoped sub-request.

    Facility slices use continent/region/country (country may be empty).
    Rate slices use destination_region and, when the query names one, a
    specific destination port/airport.
    """

    domain: Domain
    continent: str = ""
    region: str = ""
    country: str = ""
    destination_region: str = ""
    destination: str = ""

    @property
    def label(self) -> str:
        if self.domain == Domain.FACILITIES:
            parts = [self.continent, self.region, self.country]
        else:
            parts = [self.destination_region, self.destination]
        return " / ".join(part for part in parts if part) or self.domain.value


def _facility_slices(query: FacilityQuery) -> List[ScopeSlice]:
    if not query.region:
        regions = regions_of(query.continent)
        if regions:
            return [
                ScopeSlice(domain=query.domain, continent=query.continent, region=region)
                for region in regions
            ]
    return [
        ScopeSlice(
            domain=query.domain,
            continent=query.continent,
            region=query.region,
            country=query.country,
        )
    ]


def _rate_slices(query: Union[SeaRateQuery, AirRateQuery], destination: str) -> List[ScopeSlice]:
    # A named destination is already fully specified, whatever the region says.
    if destination:
        return [
            ScopeSlice(
                domain=query.domain,
                destination_region=query.destination_region.value,
                destination=destination,
            )
        ]
    if query.destination_region == RegionDestination.ALL:
        return [
            ScopeSlice(domain=query.domain, destination_region=region.value)
            for region in RegionDestination.named_regions()
        ]
    return [ScopeSlice(domain=query.domain, destination_region=query.destination_region.value)]


def enumerate_slices(query: Query) -> List[ScopeSlice]:
    """Slices for `query`, in execution order."""
    if isinstance(query, FacilityQuery):
        return _facility_slices(query)
    if isinstance(query, SeaRateQuery):
        return _rate_slices(query, query.destination_port or "")
    if isinstance(query, AirRateQuery):
        return _rate_slices(query, query.destination_airport or "")
    if isinstance(query, LocalChargesQuery):
        return [ScopeSlice(domain=query.domain)]
    raise TypeError(f"Unsupported query type: {type(query).__name__}")
