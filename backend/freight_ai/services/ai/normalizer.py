"""
Response normalizer.

Turns raw model text into validated result items:

1. Locate the JSON array: strip markdown fences and parse; failing that,
   scan for the first balanced `[ { ... } ]` span that parses.
2. Validate each element through the domain's result schema. Optional
   fields default to "N/A" / "General"; elements missing their natural key
   are dropped with a warning.
3. Stamp fresh ids and attach the response's grounding sources.

Prices are passed through as the model wrote them. Use parse_price() when a
numeric value is needed.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import ValidationError

from freight_ai.core.logging import get_logger
from freight_ai.core.metrics import record_normalizer_defaulted, record_normalizer_rejected
from freight_ai.models.queries import (
    AirRateQuery,
    Domain,
    Query,
    SeaRateQuery,
    TransportType,
)
from freight_ai.models.results import (
    NOT_AVAILABLE,
    AirRate,
    Facility,
    GroundingSource,
    LocalCharge,
    ResultItem,
    SeaRate,
    generate_item_id,
)

logger = get_logger(__name__)

FENCE_RE = re.compile(r"```(?:json|JSON)?")
ARRAY_START_RE = re.compile(r"\[\s*\{")
NON_NUMERIC_RE = re.compile(r"[^0-9.]")

# Metadata is owned by the service, never taken from model output.
RESERVED_KEYS = ("id", "verified", "sources", "mapsUri", "maps_uri")

RESULT_SCHEMAS: Dict[Domain, Tuple[Type[ResultItem], str]] = {
    Domain.FACILITIES: (Facility, "fac"),
    Domain.SEA_RATES: (SeaRate, "sea"),
    Domain.AIR_RATES: (AirRate, "air"),
    Domain.LOCAL_CHARGES: (LocalCharge, "lc"),
}


class MalformedResponseError(Exception):
    """The model answered with text that holds no parseable JSON array."""

    def __init__(self, message: str, raw_excerpt: str = ""):
        super().__init__(message)
        self.raw_excerpt = raw_excerpt


@dataclass(frozen=True)
class NormalizationContext:
    """What the normalizer needs to know about the call that produced the text."""

    query: Query
    sources: Tuple[GroundingSource, ...] = ()

    @property
    def domain(self) -> Domain:
        return self.query.domain


def _strip_fences(text: str) -> str:
    return FENCE_RE.sub("", text).strip()


def _balanced_span(text: str, start: int) -> Optional[str]:
    """The bracket-balanced span starting at `start`, ignoring brackets inside strings."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def _as_array(parsed: Any) -> Optional[List[Any]]:
    if isinstance(parsed, list):
        return parsed
    # {"rates": [...]} style envelopes
    if isinstance(parsed, dict):
        lists = [value for value in parsed.values() if isinstance(value, list)]
        if len(lists) == 1:
            return lists[0]
    return None


def extract_json_array(raw_text: str) -> List[Any]:
    """
    Locate and parse the JSON array in `raw_text`.

    Raises:
        MalformedResponseError: no parseable array found
    """
    text = _strip_fences(raw_text or "")
    try:
        array = _as_array(json.loads(text))
    except ValueError:
        array = None
    if array is not None:
        return array

    for match in ARRAY_START_RE.finditer(text):
        span = _balanced_span(text, match.start())
        if span is None:
            continue
        try:
            return json.loads(span)
        except ValueError:
            continue

    raise MalformedResponseError(
        "No JSON array found in model response",
        raw_excerpt=(raw_text or "")[:200],
    )


def parse_price(value: Any) -> Optional[float]:
    """Numeric value of a price such as "USD 1,250.50"; None when there is none."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = NON_NUMERIC_RE.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def _has_value(payload: Dict[str, Any], keys: Sequence[str]) -> bool:
    return any(str(payload.get(key) or "").strip() for key in keys)


def _backfill(payload: Dict[str, Any], keys: Sequence[str], value: str) -> None:
    if not _has_value(payload, keys):
        payload[keys[0]] = value


def _coerce_transport_type(value: Any, index: int) -> TransportType:
    if isinstance(value, str):
        for member in TransportType:
            if value.strip().lower() == member.value.lower():
                return member
    # Unknown values are kept as ports, but flagged so extraction errors stay visible.
    record_normalizer_defaulted(Domain.FACILITIES.value, "type")
    logger.warning(
        "normalizer_enum_defaulted",
        field="type",
        value=value,
        default=TransportType.PORT.value,
        index=index,
    )
    return TransportType.PORT


def _prepare(element: Dict[str, Any], context: NormalizationContext, index: int) -> Dict[str, Any]:
    payload = {key: value for key, value in element.items() if key not in RESERVED_KEYS}
    query = context.query

    if context.domain == Domain.FACILITIES:
        payload["type"] = _coerce_transport_type(payload.get("type"), index)
    elif isinstance(query, SeaRateQuery):
        _backfill(payload, ("originPort", "origin_port", "origin"), query.origin_port)
        _backfill(payload, ("commodity",), query.commodity.value)
        _backfill(payload, ("containerSize", "container_size", "containerType"), query.container_size.value)
    elif isinstance(query, AirRateQuery):
        # The rate sheet is for exactly what was asked; these always come from the query.
        payload["originAirport"] = query.origin_airport
        payload["commodity"] = query.commodity.value
        payload["weightBreak"] = query.weight_break.value

    _, prefix = RESULT_SCHEMAS[context.domain]
    payload["id"] = generate_item_id(prefix)
    payload["verified"] = False
    payload["sources"] = list(context.sources)
    return payload


def _warn_unparseable_price(item: ResultItem, index: int) -> None:
    price = getattr(item, "estimated_price", None)
    if price is not None and price != NOT_AVAILABLE and parse_price(price) is None:
        logger.warning(
            "normalizer_price_unparseable",
            item_id=item.id,
            value=price,
            index=index,
        )


def normalize(raw_text: str, context: NormalizationContext) -> List[ResultItem]:
    """
    Validated result items for one model response.

    Elements that are not objects, or fail schema validation, are skipped.

    Raises:
        MalformedResponseError: no parseable JSON array in `raw_text`
    """
    elements = extract_json_array(raw_text)
    schema, _ = RESULT_SCHEMAS[context.domain]
    domain = context.domain.value

    items: List[ResultItem] = []
    for index, element in enumerate(elements):
        if not isinstance(element, dict):
            record_normalizer_rejected(domain)
            logger.warning(
                "normalizer_element_skipped",
                domain=domain,
                index=index,
                element_type=type(element).__name__,
            )
            continue

        try:
            item = schema.model_validate(_prepare(element, context, index))
        except ValidationError as exc:
            record_normalizer_rejected(domain)
            logger.warning(
                "normalizer_element_rejected",
                domain=domain,
                index=index,
                error_count=exc.error_count(),
                errors=[".".join(str(loc) for loc in err["loc"]) for err in exc.errors()],
            )
            continue

        _warn_unparseable_price(item, index)
        items.append(item)

    logger.debug(
        "normalizer_completed",
        domain=domain,
        elements=len(elements),
        items=len(items),
    )
    return items
