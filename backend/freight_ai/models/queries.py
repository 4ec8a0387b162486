"""
Query models consumed by the orchestration core.

Queries are immutable. Each query class carries a `domain` discriminator
that selects its prompt template, result schema and slicing rule.
"""
import datetime
from enum import Enum
from typing import ClassVar, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from freight_ai.data.world_locations import ALL_AIRPORTS_OPTION, ALL_PORTS_OPTION


class Domain(str, Enum):
    FACILITIES = "facilities"
    SEA_RATES = "sea_rates"
    AIR_RATES = "air_rates"
    LOCAL_CHARGES = "local_charges"


class TransportType(str, Enum):
    PORT = "Port"
    AIRPORT = "Airport"


class CommodityType(str, Enum):
    """Commodity vocabulary shared by sea and air freight."""

    GENERAL = "General Cargo"
    VALUABLE = "Valuable Cargo (VAL)"
    PHARMA = "Pharma / Drugs (PIL)"
    HEAVY = "Heavy Cargo (HEA)"
    HUM = "Human Remains (HUM)"
    DRY_BULK = "Dry Bulk"
    LIQUID_BULK = "Liquid Bulk"
    BREAK_BULK = "Break Bulk"
    PROJECT = "Project Cargo"
    RORO = "Ro-Ro (Kendaraan)"
    REEFER = "Reefer / Perishable"
    DG = "Dangerous Goods (DG)"
    AVI = "Live Animals (AVI)"


class ContainerSize(str, Enum):
    CNT_20 = "20' Standard (20GP)"
    CNT_40 = "40' Standard (40GP)"
    CNT_40HC = "40' High Cube (40HC)"
    LCL = "LCL (Per CBM)"
    ISO_TANK = "ISO Tank (20')"
    FLAT_RACK = "Flat Rack / Open Top (OOG)"


class AirWeightBreak(str, Enum):
    MIN = "Min (Minimum)"
    N_45 = "-45 Kg"
    P_45 = "+45 Kg"
    P_100 = "+100 Kg"
    P_300 = "+300 Kg"
    P_500 = "+500 Kg"
    P_1000 = "+1000 Kg"


class RegionDestination(str, Enum):
    ALL = "All Global Regions"
    ASIA = "Asia"
    EUROPE = "Europe"
    NORTH_AMERICA = "North America"
    SOUTH_AMERICA = "South America"
    MIDDLE_EAST = "Middle East & Red Sea"
    AFRICA = "Africa"
    OCEANIA = "Oceania"

    @classmethod
    def named_regions(cls) -> List["RegionDestination"]:
        """Every concrete region, in declaration order (ALL excluded)."""
        return [region for region in cls if region is not cls.ALL]


class _Query(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    domain: ClassVar[Domain]


class FacilityQuery(_Query):
    """
    Extract seaports and airports for a geographic scope.

    `region` empty means "every region of the continent"; `country` empty
    means "every country of the region".
    """

    domain: ClassVar[Domain] = Domain.FACILITIES

    continent: str = Field(..., min_length=1)
    region: str = ""
    country: str = ""
    exclude_countries: str = Field("", description="Comma-separated countries to leave out")

    @model_validator(mode="after")
    def _country_requires_region(self) -> "FacilityQuery":
        if self.country and not self.region:
            raise ValueError("country cannot be set without its region")
        return self


class SeaRateQuery(_Query):
    """Weekly ocean freight rate sheet for exports from an Indonesian port."""

    domain: ClassVar[Domain] = Domain.SEA_RATES

    origin_port: str = Field(..., min_length=1)
    commodity: CommodityType = CommodityType.GENERAL
    container_size: ContainerSize = ContainerSize.CNT_20
    target_date: datetime.date
    destination_region: RegionDestination = RegionDestination.ALL
    destination_port: Optional[str] = None


class AirRateQuery(_Query):
    """Weekly air freight rate sheet for exports from an Indonesian airport."""

    domain: ClassVar[Domain] = Domain.AIR_RATES

    origin_airport: str = Field(..., min_length=1)
    commodity: CommodityType = CommodityType.GENERAL
    weight_break: AirWeightBreak = AirWeightBreak.P_100
    target_date: datetime.date
    destination_region: RegionDestination = RegionDestination.ALL
    destination_airport: Optional[str] = None


class LocalChargesQuery(_Query):
    """Local handling charges at one Indonesian port/airport, or at all of them."""

    domain: ClassVar[Domain] = Domain.LOCAL_CHARGES

    date: datetime.date
    commodity: CommodityType = CommodityType.GENERAL
    transport_mode: TransportType = TransportType.PORT
    origin_location: str = Field(..., min_length=1)

    @property
    def covers_all_ports(self) -> bool:
        return "All Major Ports" in self.origin_location

    @property
    def covers_all_airports(self) -> bool:
        return "All Major Airports" in self.origin_location

    @classmethod
    def umbrella_option(cls, transport_mode: TransportType) -> str:
        """The "all facilities" origin label for a transport mode."""
        return ALL_PORTS_OPTION if transport_mode == TransportType.PORT else ALL_AIRPORTS_OPTION


Query = Union[FacilityQuery, SeaRateQuery, AirRateQuery, LocalChargesQuery]
