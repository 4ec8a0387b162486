"""
Unit tests for query and result models.
"""
import datetime

import pytest
from pydantic import ValidationError

from freight_ai.data.world_locations import ALL_AIRPORTS_OPTION, ALL_PORTS_OPTION, countries_of, regions_of
from freight_ai.models.queries import (
    Domain,
    FacilityQuery,
    LocalChargesQuery,
    RegionDestination,
    SeaRateQuery,
    TransportType,
)
from freight_ai.models.results import NOT_AVAILABLE, AirRate, Facility, LocalCharge, SeaRate


class TestQueries:
    def test_domain_discriminators(self):
        assert FacilityQuery.domain == Domain.FACILITIES
        assert SeaRateQuery.domain == Domain.SEA_RATES
        assert LocalChargesQuery.domain == Domain.LOCAL_CHARGES

    def test_country_requires_region(self):
        with pytest.raises(ValidationError):
            FacilityQuery(continent="Asia", country="Indonesia")

    def test_continent_is_required(self):
        with pytest.raises(ValidationError):
            FacilityQuery(continent="  ")

    def test_queries_are_immutable(self):
        query = FacilityQuery(continent="Asia")

        with pytest.raises(ValidationError):
            query.region = "Eastern Asia"

    def test_named_regions_excludes_all(self):
        regions = RegionDestination.named_regions()

        assert len(regions) == 7
        assert RegionDestination.ALL not in regions

    def test_umbrella_options(self):
        assert LocalChargesQuery.umbrella_option(TransportType.PORT) == ALL_PORTS_OPTION
        assert LocalChargesQuery.umbrella_option(TransportType.AIRPORT) == ALL_AIRPORTS_OPTION

        query = LocalChargesQuery(date=datetime.date(2025, 3, 1), origin_location=ALL_AIRPORTS_OPTION)
        assert query.covers_all_airports
        assert not query.covers_all_ports


class TestNaturalKeys:
    def test_facility_key_ignores_case_and_whitespace(self):
        assert Facility(name="A", code=" sgsin ").natural_key() == Facility(name="B", code="SGSIN").natural_key()

    def test_rate_rows_key_on_their_id(self):
        """Two rows for the same route are distinct quotes, not duplicates."""
        a = SeaRate(destinationPort="Rotterdam", carrier="MSC", containerSize="40GP")
        b = SeaRate(destinationPort="Rotterdam", carrier="MSC", containerSize="40GP")
        c = AirRate(destinationAirport="SIN", airline="SQ")

        assert a.natural_key() == a.id
        assert a.natural_key() != b.natural_key()
        assert c.natural_key() == c.id

    def test_local_charge_key(self):
        assert LocalCharge(locationName="Tanjung Priok").natural_key() == "tanjung priok"


class TestSerialisation:
    def test_results_dump_camel_case(self):
        rate = SeaRate(destinationPort="Busan", transitTime="12 Days")

        dumped = rate.model_dump(by_alias=True)

        assert dumped["destinationPort"] == "Busan"
        assert dumped["transitTime"] == "12 Days"
        assert dumped["carrierIndication"] == NOT_AVAILABLE
        assert dumped["verified"] is False

    def test_facility_round_trips_through_camel_case(self):
        facility = Facility(name="Kualanamu", code="KNO", type=TransportType.AIRPORT, latitude=3.64)

        restored = Facility.model_validate(facility.model_dump(by_alias=True))

        assert restored == facility


def test_world_locations_lookup():
    assert regions_of("Asia")[0] == "South-Eastern Asia"
    assert "Indonesia" in countries_of("Asia", "South-Eastern Asia")
    assert regions_of("Atlantis") == []
