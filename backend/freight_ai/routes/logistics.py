"""
Logistics endpoints.

Query parameter names match the automation links used by the front end
(e.g. ?continent=Asia&region=&country=), so a link can be replayed
against the API directly.

GET  /facilities
GET  /rates/sea
GET  /rates/air
GET  /local-charges
POST /verify/facility
POST /verify/air-rate

OrchestrationError and ModelCallError are left to the app-level handlers,
which answer 502 with the generic retry message.
"""
import datetime
from typing import Callable, List, Optional, TypeVar

from fastapi import APIRouter, HTTPException, Query
from pydantic import ValidationError

from freight_ai.core.logging import get_logger
from freight_ai.models.queries import (
    AirRateQuery,
    AirWeightBreak,
    CommodityType,
    ContainerSize,
    FacilityQuery,
    LocalChargesQuery,
    RegionDestination,
    SeaRateQuery,
    TransportType,
)
from freight_ai.models.results import AirRate, Facility, LocalCharge, SeaRate, VerificationResult
from freight_ai.services.logistics import get_logistics_service

logger = get_logger(__name__)

router = APIRouter()

Q = TypeVar("Q")


def _build_query(factory: Callable[..., Q], **values) -> Q:
    try:
        return factory(**values)
    except ValidationError as exc:
        logger.warning("logistics_query_invalid", errors=exc.errors(include_url=False))
        raise HTTPException(
            status_code=422,
            detail=[
                {"loc": list(err["loc"]), "msg": err["msg"]}
                for err in exc.errors(include_url=False)
            ],
        ) from exc


@router.get("/facilities", response_model=List[Facility])
async def extract_facilities(
    continent: str = Query(..., description="Continent, e.g. Asia"),
    region: str = Query("", description="Region; empty fans out over every region"),
    country: str = Query("", description="Country; requires region"),
    exclude: str = Query("", description="Comma-separated countries to exclude"),
):
    query = _build_query(
        FacilityQuery,
        continent=continent,
        region=region,
        country=country,
        exclude_countries=exclude,
    )
    return await get_logistics_service().extract_facilities(query)


@router.get("/rates/sea", response_model=List[SeaRate])
async def fetch_sea_rates(
    origin: str = Query("Jakarta (Tanjung Priok)", description="Origin port in Indonesia"),
    destination: Optional[str] = Query(None, description="Specific destination port"),
    commodity: CommodityType = Query(CommodityType.GENERAL),
    container: ContainerSize = Query(ContainerSize.CNT_20),
    region: RegionDestination = Query(RegionDestination.ALL),
    date: Optional[datetime.date] = Query(None, description="Reference date (default: today)"),
):
    query = _build_query(
        SeaRateQuery,
        origin_port=origin,
        destination_port=destination or None,
        commodity=commodity,
        container_size=container,
        destination_region=region,
        target_date=date or datetime.date.today(),
    )
    return await get_logistics_service().fetch_sea_rates(query)


@router.get("/rates/air", response_model=List[AirRate])
async def fetch_air_rates(
    origin: str = Query("Jakarta (CGK) - Soekarno-Hatta", description="Origin airport in Indonesia"),
    destination: Optional[str] = Query(None, description="Specific destination airport"),
    commodity: CommodityType = Query(CommodityType.GENERAL),
    weight: AirWeightBreak = Query(AirWeightBreak.P_100),
    region: RegionDestination = Query(RegionDestination.ALL),
    date: Optional[datetime.date] = Query(None, description="Reference date (default: today)"),
):
    query = _build_query(
        AirRateQuery,
        origin_airport=origin,
        destination_airport=destination or None,
        commodity=commodity,
        weight_break=weight,
        destination_region=region,
        target_date=date or datetime.date.today(),
    )
    return await get_logistics_service().fetch_air_rates(query)


@router.get("/local-charges", response_model=List[LocalCharge])
async def analyze_local_charges(
    transport: TransportType = Query(TransportType.PORT),
    origin: Optional[str] = Query(None, description="Port/airport; default: all major facilities"),
    commodity: CommodityType = Query(CommodityType.GENERAL),
    date: Optional[datetime.date] = Query(None, description="Reference date (default: today)"),
):
    query = _build_query(
        LocalChargesQuery,
        transport_mode=transport,
        origin_location=origin or LocalChargesQuery.umbrella_option(transport),
        commodity=commodity,
        date=date or datetime.date.today(),
    )
    return await get_logistics_service().analyze_local_charges(query)


@router.post(
    "/verify/facility",
    response_model=VerificationResult,
    response_model_exclude_none=True,
)
async def verify_facility(item: Facility):
    """Always 200: a failed verification is reported as {"verified": false}."""
    return await get_logistics_service().verify_facility(item)


@router.post(
    "/verify/air-rate",
    response_model=VerificationResult,
    response_model_exclude_none=True,
)
async def verify_air_rate(item: AirRate):
    return await get_logistics_service().verify_air_rate(item)
