"""
Async HTTP client for the generative model provider.

Design constraints:
- No provider SDK; plain httpx against the Generative Language REST API
  (POST {api_base}/models/{model}:generateContent)
- One call per invocation. Retries live in the executor, not here
- Credentials come from Settings, never from os.environ directly

Recognised generation options (GenerationConfig):
- force_json_output -> generationConfig.responseMimeType = application/json
- reasoning_budget  -> generationConfig.thinkingConfig.thinkingBudget
- search_grounding  -> tools: [{"googleSearch": {}}]
- maps_grounding    -> tools: [{"googleMaps": {}}]
"""
import re
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from freight_ai.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from freight_ai.core.config import Settings, get_settings
from freight_ai.core.logging import get_logger
from freight_ai.core.metrics import record_llm_error, record_llm_request
from freight_ai.models.results import GroundingSource

logger = get_logger(__name__)

# "429" only as a whole token, so codes like 4290 do not match.
RATE_LIMIT_RE = re.compile(r"\b429\b|quota|RESOURCE_EXHAUSTED", re.IGNORECASE)


class GenerationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    force_json_output: bool = False
    search_grounding: bool = False
    maps_grounding: bool = False
    reasoning_budget: Optional[int] = Field(None, ge=0)


class ModelRequest(BaseModel):
    """Everything needed to issue (and re-issue) one model call."""

    model_config = ConfigDict(frozen=True)

    model: str
    contents: str
    config: GenerationConfig = GenerationConfig()


class ModelResponse(BaseModel):
    """Response text plus whatever grounding evidence the provider attached."""

    text: str = ""
    sources: List[GroundingSource] = Field(default_factory=list)
    maps_uri: Optional[str] = None


class ProviderError(Exception):
    """
    A failed provider call.

    `status` is the HTTP status code (None for transport failures);
    `reason` is the provider's error status string, e.g. "RESOURCE_EXHAUSTED".
    """

    def __init__(self, message: str, status: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.reason = reason


def is_rate_limited(exc: BaseException) -> bool:
    """True for rate-limit / quota-exhaustion signatures."""
    status = getattr(exc, "status", None)
    if status == 429 or status == "RESOURCE_EXHAUSTED":
        return True
    if getattr(exc, "reason", None) == "RESOURCE_EXHAUSTED":
        return True
    return RATE_LIMIT_RE.search(str(exc)) is not None


def build_payload(request: ModelRequest) -> Dict[str, Any]:
    """Translate a ModelRequest into the REST request body."""
    config = request.config
    generation: Dict[str, Any] = {}
    if config.force_json_output:
        generation["responseMimeType"] = "application/json"
    if config.reasoning_budget is not None:
        generation["thinkingConfig"] = {"thinkingBudget": config.reasoning_budget}

    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": request.contents}]}],
    }
    if generation:
        payload["generationConfig"] = generation

    tools = []
    if config.search_grounding:
        tools.append({"googleSearch": {}})
    if config.maps_grounding:
        tools.append({"googleMaps": {}})
    if tools:
        payload["tools"] = tools
    return payload


def parse_response(data: Dict[str, Any]) -> ModelResponse:
    """
    Extract text and grounding from a generateContent response.

    Only the first candidate is used. Text parts are concatenated; grounding
    chunks contribute web/maps sources, and the first maps chunk URI becomes
    `maps_uri`.
    """
    candidates = data.get("candidates") or []
    if not candidates:
        return ModelResponse()

    candidate = candidates[0] or {}
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

    sources: List[GroundingSource] = []
    maps_uri: Optional[str] = None
    chunks = (candidate.get("groundingMetadata") or {}).get("groundingChunks") or []
    for chunk in chunks:
        if not isinstance(chunk, dict):
            continue
        ref = chunk.get("web") or chunk.get("maps")
        if not isinstance(ref, dict) or not ref.get("uri"):
            continue
        sources.append(GroundingSource(uri=ref["uri"], title=ref.get("title")))
        if maps_uri is None and "maps" in chunk:
            maps_uri = ref["uri"]

    return ModelResponse(text=text, sources=sources, maps_uri=maps_uri)


def _error_from_response(response: httpx.Response) -> ProviderError:
    message = response.text
    reason = None
    try:
        error = response.json().get("error") or {}
        message = error.get("message") or message
        reason = error.get("status")
    except ValueError:
        pass
    return ProviderError(message, status=response.status_code, reason=reason)


class GeminiClient:
    """Single-shot async client for generateContent."""

    def __init__(
        self,
        api_base: str,
        api_key: Optional[str],
        timeout_seconds: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

        self.circuit_breaker = CircuitBreaker(
            name="model_provider",
            failure_threshold=5,
            open_duration_seconds=30.0,
            # A rate-limited provider is up; only outages trip the breaker.
            is_failure=lambda exc: not is_rate_limited(exc),
        )

    async def _post(self, model: str, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key or "",
        }
        url = f"{self.api_base}/models/{model}:generateContent"
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=payload)
        if response.status_code >= 400:
            raise _error_from_response(response)
        return response

    async def generate(self, request: ModelRequest) -> ModelResponse:
        """
        Issue one generateContent call.

        Raises:
            ProviderError: missing credential, HTTP error status or transport failure
            CircuitBreakerOpenError: provider marked unavailable after repeated failures
        """
        model = request.model
        if not self.api_key:
            record_llm_error(model, "missing_api_key")
            raise ProviderError("Model API key not configured")

        start = time.time()
        try:
            response = await self.circuit_breaker.call_async(self._post, model, build_payload(request))
        except CircuitBreakerOpenError:
            record_llm_error(model, "circuit_open")
            logger.warning("llm_circuit_open", model=model)
            raise
        except ProviderError as exc:
            error_type = "rate_limited" if exc.status == 429 else "http_error"
            record_llm_error(model, error_type)
            logger.warning(
                "llm_http_error",
                model=model,
                status=exc.status,
                reason=exc.reason,
                error=exc.message,
            )
            raise
        except httpx.TimeoutException as exc:
            record_llm_error(model, "timeout")
            logger.warning("llm_timeout", model=model, error=str(exc))
            raise ProviderError(f"Model call timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            record_llm_error(model, "transport_error")
            logger.warning(
                "llm_transport_error",
                model=model,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ProviderError(f"Model call failed: {exc}") from exc
        finally:
            record_llm_request(model, time.time() - start)

        try:
            data = response.json()
        except ValueError as exc:
            record_llm_error(model, "invalid_envelope")
            raise ProviderError("Provider returned a non-JSON envelope", status=response.status_code) from exc

        return parse_response(data)


_client: Optional[GeminiClient] = None


def get_model_client(settings: Optional[Settings] = None) -> GeminiClient:
    """Global provider client, built from settings on first use."""
    global _client
    if _client is None:
        settings = settings or get_settings()
        _client = GeminiClient(
            api_base=settings.api_base,
            api_key=settings.api_key,
            timeout_seconds=settings.timeout_seconds,
        )
    return _client
