"""
Unit tests for the response normalizer.

Tests verify:
- JSON arrays are found in fenced, prefixed and enveloped model output
- Missing optional fields are filled with explicit defaults
- Elements without their natural key are dropped, not fatal
- Rate rows inherit the query's origin, commodity and equipment
"""
import datetime
import json

import pytest

from freight_ai.models.queries import (
    AirRateQuery,
    AirWeightBreak,
    CommodityType,
    ContainerSize,
    FacilityQuery,
    LocalChargesQuery,
    SeaRateQuery,
    TransportType,
)
from freight_ai.models.results import GENERAL, NOT_AVAILABLE, Facility, GroundingSource
from freight_ai.services.ai.normalizer import (
    MalformedResponseError,
    NormalizationContext,
    extract_json_array,
    normalize,
    parse_price,
)

REFERENCE_DATE = datetime.date(2025, 3, 1)


def facility_context(**kwargs):
    return NormalizationContext(query=FacilityQuery(continent="Asia"), **kwargs)


class TestExtractJsonArray:
    def test_plain_array(self):
        assert extract_json_array('[{"a": 1}]') == [{"a": 1}]

    def test_markdown_fences_are_stripped(self):
        raw = '```json\n[{"code": "IDJKT"}]\n```'

        assert extract_json_array(raw) == [{"code": "IDJKT"}]

    def test_array_after_prose(self):
        """Leading and trailing chatter around the array is ignored."""
        raw = 'Here is the data you asked for:\n[{"code": "SGSIN", "note": "see [1]"}]\nHope this helps!'

        assert extract_json_array(raw) == [{"code": "SGSIN", "note": "see [1]"}]

    def test_single_list_envelope_is_unwrapped(self):
        assert extract_json_array('{"rates": [{"a": 1}, {"a": 2}]}') == [{"a": 1}, {"a": 2}]

    def test_empty_array(self):
        assert extract_json_array("[]") == []

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "I could not find any ports.",
            '{"error": "nothing"}',
            '[{"code": "IDJKT"',
        ],
    )
    def test_no_array_raises(self, raw):
        with pytest.raises(MalformedResponseError):
            extract_json_array(raw)

    def test_error_keeps_excerpt(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            extract_json_array("x" * 500)

        assert exc_info.value.raw_excerpt == "x" * 200


class TestFacilityNormalization:
    def test_missing_fields_get_defaults(self):
        """name + code is enough; everything else is filled, never absent."""
        items = normalize('[{"name": "Tanjung Priok", "code": "IDTPP"}]', facility_context())

        assert len(items) == 1
        item = items[0]
        assert isinstance(item, Facility)
        assert item.type == TransportType.PORT
        assert item.category == GENERAL
        assert item.country == NOT_AVAILABLE
        assert item.city == NOT_AVAILABLE
        assert item.latitude is None
        assert item.verified is False
        assert item.id.startswith("fac-")

    def test_null_and_blank_values_get_defaults(self):
        raw = json.dumps([{"name": "Soekarno-Hatta", "code": "CGK", "type": "airport", "city": None, "category": "  "}])

        item = normalize(raw, facility_context())[0]

        assert item.type == TransportType.AIRPORT
        assert item.city == NOT_AVAILABLE
        assert item.category == GENERAL

    def test_unknown_type_defaults_to_port(self):
        item = normalize('[{"name": "Harbour", "code": "XXHBR", "type": "Dock"}]', facility_context())[0]

        assert item.type == TransportType.PORT

    def test_element_without_key_is_dropped(self):
        raw = json.dumps([
            {"name": "No Code Port"},
            {"name": "Belawan", "code": "IDBLW"},
            "not an object",
        ])

        items = normalize(raw, facility_context())

        assert [item.code for item in items] == ["IDBLW"]

    def test_numeric_strings_and_garbage_coordinates(self):
        raw = json.dumps([{"name": "Makassar", "code": "IDMAK", "latitude": "-5.13", "longitude": "unknown"}])

        item = normalize(raw, facility_context())[0]

        assert item.latitude == pytest.approx(-5.13)
        assert item.longitude is None

    def test_model_supplied_metadata_is_ignored(self):
        raw = json.dumps([{"name": "Batam", "code": "IDBTH", "id": "fixed", "verified": True}])
        sources = (GroundingSource(uri="https://example.com"),)

        item = normalize(raw, facility_context(sources=sources))[0]

        assert item.id != "fixed"
        assert item.verified is False
        assert item.sources == list(sources)

    def test_ids_are_unique(self):
        raw = json.dumps([{"name": f"Port {i}", "code": f"C{i}"} for i in range(20)])

        ids = {item.id for item in normalize(raw, facility_context())}

        assert len(ids) == 20


class TestRateNormalization:
    def test_sea_rate_backfills_from_query(self):
        query = SeaRateQuery(
            origin_port="Jakarta (Tanjung Priok)",
            commodity=CommodityType.REEFER,
            container_size=ContainerSize.CNT_40HC,
            target_date=REFERENCE_DATE,
        )
        raw = json.dumps([{"destinationPort": "Rotterdam", "estimatedPrice": 1850, "carrier": "Maersk"}])

        item = normalize(raw, NormalizationContext(query=query))[0]

        assert item.origin_port == "Jakarta (Tanjung Priok)"
        assert item.commodity == CommodityType.REEFER.value
        assert item.container_size == ContainerSize.CNT_40HC.value
        assert item.estimated_price == "1850"
        assert item.carrier_indication == "Maersk"
        assert item.transit_time == NOT_AVAILABLE

    def test_sea_rate_keeps_model_origin_when_present(self):
        query = SeaRateQuery(origin_port="Jakarta (Tanjung Priok)", target_date=REFERENCE_DATE)
        raw = json.dumps([{"destinationPort": "Busan", "originPort": "Tanjung Priok"}])

        item = normalize(raw, NormalizationContext(query=query))[0]

        assert item.origin_port == "Tanjung Priok"

    def test_air_rate_always_uses_query_values(self):
        query = AirRateQuery(
            origin_airport="Jakarta (CGK) - Soekarno-Hatta",
            weight_break=AirWeightBreak.P_500,
            commodity=CommodityType.PHARMA,
            target_date=REFERENCE_DATE,
        )
        raw = json.dumps([{"destinationAirport": "SIN Singapore", "weightBreak": "+45 Kg", "commodity": "General"}])

        item = normalize(raw, NormalizationContext(query=query))[0]

        assert item.origin_airport == "Jakarta (CGK) - Soekarno-Hatta"
        assert item.weight_break == AirWeightBreak.P_500.value
        assert item.commodity == CommodityType.PHARMA.value
        assert item.id.startswith("air-")

    def test_rate_without_destination_is_dropped(self):
        query = SeaRateQuery(origin_port="Semarang (Tanjung Emas)", target_date=REFERENCE_DATE)
        raw = json.dumps([{"carrier": "ONE"}, {"destinationPort": "Jebel Ali"}])

        items = normalize(raw, NormalizationContext(query=query))

        assert [item.destination_port for item in items] == ["Jebel Ali"]

    def test_local_charge_row(self):
        query = LocalChargesQuery(
            date=REFERENCE_DATE,
            transport_mode=TransportType.AIRPORT,
            origin_location="Jakarta (CGK) - Soekarno-Hatta",
        )
        raw = json.dumps([{"location": "Soekarno-Hatta", "tsc": "IDR 1,200/kg", "awbFee": None}])

        item = normalize(raw, NormalizationContext(query=query))[0]

        assert item.location_name == "Soekarno-Hatta"
        assert item.tsc == "IDR 1,200/kg"
        assert item.awb_fee == NOT_AVAILABLE
        assert item.thc20 == NOT_AVAILABLE


@pytest.mark.parametrize(
    "value, expected",
    [
        ("USD 1,250.50", 1250.5),
        ("1850", 1850.0),
        (975, 975.0),
        ("N/A", None),
        ("", None),
        (None, None),
        (True, None),
    ],
)
def test_parse_price(value, expected):
    assert parse_price(value) == expected
