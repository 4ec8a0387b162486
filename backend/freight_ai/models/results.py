"""
Result item schemas.

Model output is validated through these models before it reaches callers.
Keys follow the camelCase names used in the prompts (`transitTime`,
`carrierIndication`, ...); snake_case field names are accepted too.
Optional text fields that come back missing, null or blank are filled with
an explicit sentinel ("N/A", or "General" for facility categories) so the
caller never sees an absent field.
"""
import uuid
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from freight_ai.models.queries import TransportType

NOT_AVAILABLE = "N/A"
GENERAL = "General"


def generate_item_id(prefix: str) -> str:
    """Random item id, e.g. "fac-3f2a9c0d1e4b"."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class GroundingSource(BaseModel):
    """A web or map reference returned by the provider as grounding evidence."""

    uri: str
    title: Optional[str] = None


class ResultItem(BaseModel):
    """Metadata common to every returned record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    id: str = Field(default_factory=lambda: generate_item_id("item"))
    verified: bool = False
    sources: List[GroundingSource] = Field(default_factory=list)
    maps_uri: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _fill_missing(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value

    def natural_key(self) -> Any:
        """
        Key used to deduplicate merged fan-out results.

        Defaults to the item id, so rows without a natural identity (rate
        sheet rows) are never merged.
        """
        return self.id


class Facility(ResultItem):
    """A seaport or airport."""

    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, description="UN/LOCODE for ports, IATA/ICAO for airports")
    type: TransportType = TransportType.PORT
    category: str = GENERAL
    country: str = NOT_AVAILABLE
    region: str = Field(NOT_AVAILABLE, description="State / province")
    city: str = NOT_AVAILABLE
    description: str = NOT_AVAILABLE
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _lenient_coordinate(cls, value: Any) -> Optional[float]:
        try:
            return float(str(value).strip())
        except (TypeError, ValueError):
            return None

    def natural_key(self) -> str:
        return self.code.strip().upper()


class SeaRate(ResultItem):
    """One row of an ocean freight rate sheet."""

    origin_port: str = Field(NOT_AVAILABLE, validation_alias=AliasChoices("originPort", "origin_port", "origin"))
    destination_port: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("destinationPort", "destination_port", "destination"),
    )
    country: str = NOT_AVAILABLE
    region: str = NOT_AVAILABLE
    currency: str = NOT_AVAILABLE
    estimated_price: str = Field(
        NOT_AVAILABLE,
        validation_alias=AliasChoices("estimatedPrice", "estimated_price", "rate", "price"),
    )
    transit_time: str = NOT_AVAILABLE
    frequency: str = NOT_AVAILABLE
    validity: str = Field(NOT_AVAILABLE, validation_alias=AliasChoices("validity", "validUntil", "valid_until"))
    carrier_indication: str = Field(
        NOT_AVAILABLE,
        validation_alias=AliasChoices("carrierIndication", "carrier_indication", "carrier", "carriers"),
    )
    commodity: str = NOT_AVAILABLE
    container_size: str = Field(
        NOT_AVAILABLE,
        validation_alias=AliasChoices("containerSize", "container_size", "containerType"),
    )


class AirRate(ResultItem):
    """One row of an air freight rate sheet."""

    origin_airport: str = Field(NOT_AVAILABLE, validation_alias=AliasChoices("originAirport", "origin_airport", "origin"))
    destination_airport: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("destinationAirport", "destination_airport", "destination"),
    )
    country: str = NOT_AVAILABLE
    region: str = NOT_AVAILABLE
    currency: str = NOT_AVAILABLE
    estimated_price: str = Field(
        NOT_AVAILABLE,
        validation_alias=AliasChoices("estimatedPrice", "estimated_price", "rate", "price"),
    )
    fuel_surcharge: str = NOT_AVAILABLE
    war_risk_surcharge: str = NOT_AVAILABLE
    uld: str = NOT_AVAILABLE
    dg_handling: str = NOT_AVAILABLE
    temp_control: str = NOT_AVAILABLE
    perishable_fee: str = NOT_AVAILABLE
    oversize_fee: str = NOT_AVAILABLE
    transit_time: str = NOT_AVAILABLE
    frequency: str = NOT_AVAILABLE
    validity: str = Field(NOT_AVAILABLE, validation_alias=AliasChoices("validity", "validUntil", "valid_until"))
    airline_indication: str = Field(
        NOT_AVAILABLE,
        validation_alias=AliasChoices("airlineIndication", "airline_indication", "airline", "carrier"),
    )
    commodity: str = NOT_AVAILABLE
    weight_break: str = NOT_AVAILABLE


class LocalCharge(ResultItem):
    """
    Local handling charges at one port or airport.

    Sea rows fill thc20..detention_days, air rows fill tsc/ra/awb_fee; the
    other group stays "N/A".
    """

    location_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("locationName", "location_name", "location"),
    )
    thc20: str = NOT_AVAILABLE
    thc40: str = NOT_AVAILABLE
    lolo: str = NOT_AVAILABLE
    gate_in: str = NOT_AVAILABLE
    seal_fee: str = NOT_AVAILABLE
    detention_days: str = NOT_AVAILABLE
    tsc: str = NOT_AVAILABLE
    ra: str = NOT_AVAILABLE
    awb_fee: str = NOT_AVAILABLE
    handling: str = NOT_AVAILABLE
    inspection_fee: str = NOT_AVAILABLE
    storage_fee: str = NOT_AVAILABLE
    special_treatment: str = NOT_AVAILABLE
    admin_fee: str = NOT_AVAILABLE
    doc_fee: str = NOT_AVAILABLE
    coo_fee: str = NOT_AVAILABLE
    note: str = NOT_AVAILABLE

    def natural_key(self) -> str:
        return self.location_name.lower()


class VerificationResult(BaseModel):
    """
    Partial update produced by verification.

    Callers merge it into the displayed item. Serialise with
    exclude_none=True: a failed verification is exactly {"verified": false}.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    verified: bool
    maps_uri: Optional[str] = None
