"""
Prompt builder.

One generic builder, per-domain configuration. Every prompt has four parts:
- persona framing
- task and scope, with query values substituted verbatim
- the literal JSON shape the answer must follow
- completeness rules for the domain

build_prompt() is pure: no I/O, no clock, no randomness.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from freight_ai.data.world_locations import INDONESIAN_AIRPORTS, INDONESIAN_PORTS, REGION_HINTS
from freight_ai.models.queries import (
    AirRateQuery,
    Domain,
    FacilityQuery,
    LocalChargesQuery,
    Query,
    SeaRateQuery,
    TransportType,
)
from freight_ai.services.ai.slicing import ScopeSlice

FACILITY_SCHEMA = """[{
  "name": "string",
  "code": "string (UN/LOCODE for ports, IATA for airports)",
  "type": "Port" | "Airport",
  "category": "string (e.g. International, Regional, Deep Sea)",
  "country": "string",
  "region": "string (state / province)",
  "latitude": number,
  "longitude": number,
  "city": "string",
  "description": "string"
}]"""

SEA_RATE_SCHEMA = """[{
  "originPort": "string (origin port in Indonesia)",
  "destinationPort": "string (destination port)",
  "country": "string",
  "region": "string",
  "containerSize": "string",
  "commodity": "string",
  "currency": "string (ISO code, e.g. USD)",
  "estimatedPrice": "string (numbers only)",
  "validity": "string",
  "transitTime": "string (e.g. 25-30 Days)",
  "frequency": "string (e.g. Weekly)",
  "carrierIndication": "string (e.g. MSC, Maersk)"
}]"""

AIR_RATE_SCHEMA = """[{
  "destinationAirport": "string (IATA code + city)",
  "country": "string",
  "region": "string",
  "currency": "string (ISO code, e.g. USD)",
  "estimatedPrice": "string (numbers only, per kg)",
  "fuelSurcharge": "string",
  "warRiskSurcharge": "string",
  "uld": "string",
  "dgHandling": "string",
  "tempControl": "string",
  "perishableFee": "string",
  "oversizeFee": "string",
  "transitTime": "string",
  "frequency": "string",
  "validity": "string",
  "airlineIndication": "string (e.g. GA, SQ, EK)"
}]"""

SEA_CHARGES_SCHEMA = """[{
  "locationName": "string (port name)",
  "thc20": "string", "thc40": "string", "lolo": "string",
  "gateIn": "string", "sealFee": "string", "detentionDays": "string",
  "handling": "string", "inspectionFee": "string", "storageFee": "string",
  "specialTreatment": "string", "adminFee": "string",
  "docFee": "string (B/L documentation)", "cooFee": "string", "note": "string"
}]"""

AIR_CHARGES_SCHEMA = """[{
  "locationName": "string (airport name)",
  "tsc": "string (terminal service charge per kg)",
  "ra": "string (regulated agent / x-ray per kg)",
  "awbFee": "string",
  "handling": "string", "inspectionFee": "string", "storageFee": "string",
  "specialTreatment": "string", "adminFee": "string",
  "docFee": "string (AWB documentation)", "cooFee": "string", "note": "string"
}]"""

PRICE_RULE = "estimatedPrice is a single numeric value without currency symbols or ranges; put the currency in its own field."


@dataclass(frozen=True)
class PromptTemplate:
    persona: str
    render_task: Callable[[Query, ScopeSlice], List[str]]
    render_schema: Callable[[Query], str]
    render_rules: Callable[[Query, ScopeSlice], List[str]]


# ----------------------------------------------------------------------------
# Facilities
# ----------------------------------------------------------------------------


def _facility_task(query: FacilityQuery, scope: ScopeSlice) -> List[str]:
    return [
        "TASK: Extract a dataset of commercial Seaports and Airports.",
        f"SCOPE: {scope.continent}, {scope.region or 'ALL'}, {scope.country or 'ALL'}.",
        f"EXCLUSIONS: {query.exclude_countries or 'None'}.",
    ]


def _facility_rules(query: FacilityQuery, scope: ScopeSlice) -> List[str]:
    return [
        "Enumerate every commercial seaport and cargo airport in scope. Do not truncate, sample or summarise the list.",
        'type must be exactly "Port" or "Airport".',
        "latitude and longitude are decimal degrees.",
    ]


# ----------------------------------------------------------------------------
# Sea / air rate sheets
# ----------------------------------------------------------------------------


def _destination_lines(scope: ScopeSlice) -> List[str]:
    if scope.destination:
        return [f"DESTINATION: {scope.destination}"]
    hint = REGION_HINTS.get(scope.destination_region, "")
    lines = [f"REGION: {scope.destination_region}"]
    if hint:
        lines.append(f"HINTS: {hint}")
    return lines


def _sea_task(query: SeaRateQuery, scope: ScopeSlice) -> List[str]:
    return [
        f'TASK: Build a high-density "Weekly Ocean Freight Rate Sheet" for EXPORT from {query.origin_port}, Indonesia.',
        *_destination_lines(scope),
        f"CONTAINER: {query.container_size.value}",
        f"COMMODITY: {query.commodity.value}",
        f"REFERENCE DATE: {query.target_date.isoformat()}",
    ]


def _sea_rules(query: SeaRateQuery, scope: ScopeSlice) -> List[str]:
    rules = [
        PRICE_RULE,
        "Provide multiple carriers for each major route.",
        "Match exactly the keys of the output shape.",
    ]
    if not scope.destination:
        rules.insert(0, "Provide at least 50-80 rows of unique data covering the whole region.")
    return rules


def _air_task(query: AirRateQuery, scope: ScopeSlice) -> List[str]:
    return [
        f"TASK: Generate exhaustive weekly Air Freight Rates from {query.origin_airport}, Indonesia.",
        *_destination_lines(scope),
        f"WEIGHT BREAK: {query.weight_break.value}",
        f"COMMODITY: {query.commodity.value}",
        f"REFERENCE DATE: {query.target_date.isoformat()}",
    ]


def _air_rules(query: AirRateQuery, scope: ScopeSlice) -> List[str]:
    rules = [
        PRICE_RULE,
        "Include surcharge details: fuel, war risk, ULD, DG handling, temperature control, perishable and oversize fees.",
        'Use "N/A" for surcharges that do not apply.',
    ]
    if not scope.destination:
        rules.insert(0, "Output at least 50 rows covering the whole region.")
    return rules


# ----------------------------------------------------------------------------
# Local charges
# ----------------------------------------------------------------------------


def _charges_location(query: LocalChargesQuery) -> str:
    if query.covers_all_ports:
        return f"ALL PORTS: {', '.join(INDONESIAN_PORTS)}"
    if query.covers_all_airports:
        return f"ALL AIRPORTS: {', '.join(INDONESIAN_AIRPORTS)}"
    return query.origin_location


def _charges_task(query: LocalChargesQuery, scope: ScopeSlice) -> List[str]:
    return [
        f"TASK: Generate Local Charges for {_charges_location(query)}.",
        f"TRANSPORT MODE: {query.transport_mode.value}",
        f"COMMODITY: {query.commodity.value}",
        f"REFERENCE DATE: {query.date.isoformat()}",
    ]


def _charges_schema(query: LocalChargesQuery) -> str:
    return SEA_CHARGES_SCHEMA if query.transport_mode == TransportType.PORT else AIR_CHARGES_SCHEMA


def _charges_rules(query: LocalChargesQuery, scope: ScopeSlice) -> List[str]:
    rules = [
        "Provide real market estimates in IDR or USD, stating the unit in each value.",
    ]
    if query.covers_all_ports or query.covers_all_airports:
        rules.append("You must generate a row for EVERY facility listed. Do not skip any.")
    return rules


TEMPLATES: Dict[Domain, PromptTemplate] = {
    Domain.FACILITIES: PromptTemplate(
        persona="Act as a high-precision global logistics data engine.",
        render_task=_facility_task,
        render_schema=lambda query: FACILITY_SCHEMA,
        render_rules=_facility_rules,
    ),
    Domain.SEA_RATES: PromptTemplate(
        persona="Act as a Senior Global Freight Forwarder & Pricing Analyst.",
        render_task=_sea_task,
        render_schema=lambda query: SEA_RATE_SCHEMA,
        render_rules=_sea_rules,
    ),
    Domain.AIR_RATES: PromptTemplate(
        persona="Act as an Air Freight Pricing Manager.",
        render_task=_air_task,
        render_schema=lambda query: AIR_RATE_SCHEMA,
        render_rules=_air_rules,
    ),
    Domain.LOCAL_CHARGES: PromptTemplate(
        persona="Act as a Senior Freight Forwarder in Indonesia.",
        render_task=_charges_task,
        render_schema=_charges_schema,
        render_rules=_charges_rules,
    ),
}


def build_prompt(query: Query, scope: ScopeSlice) -> str:
    """
    Render the instruction for one slice of `query`.

    Raises:
        ValueError: `scope` belongs to another domain than `query`
    """
    if scope.domain != query.domain:
        raise ValueError(
            f"Slice domain {scope.domain.value} does not match query domain {query.domain.value}"
        )

    template = TEMPLATES[query.domain]
    sections: Tuple[str, ...] = (
        template.persona,
        "\n".join(template.render_task(query, scope)),
        "OUTPUT: JSON array only, no prose or markdown. Each element has this shape:\n"
        + template.render_schema(query),
        "RULES:\n" + "\n".join(f"- {rule}" for rule in template.render_rules(query, scope)),
    )
    return "\n\n".join(sections)
