from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import TraceIDMiddleware
from .routes import health, logistics, metrics
from .services.ai.executor import ModelCallError
from .services.ai.orchestration import NO_DATA_MESSAGE, OrchestrationError

settings = get_settings()
configure_logging(log_level=settings.log_level, json_output=settings.log_json)

logger = get_logger(__name__)

app = FastAPI(
    title="Freight AI Data API",
    description=(
        "AI-generated logistics reference data: ports and airports, sea and air "
        "rate sheets, local charges. Figures are model estimates, not quotations."
    ),
    version="1.0.0",
)

# Browser front end is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["X-Trace-ID", "X-Request-ID"],
)
app.add_middleware(TraceIDMiddleware)


def error_response(status_code: int, detail) -> JSONResponse:
    """JSON error body shared by every handler."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "status_code": status_code, "trace_id": get_trace_id()},
    )


@app.on_event("startup")
async def startup_event():
    logger.info(
        "app_startup_completed",
        model=settings.model,
        verify_model=settings.verify_model,
        api_key_configured=settings.api_key is not None,
    )
    if settings.api_key is None:
        logger.warning(
            "app_startup_api_key_missing",
            message="GEMINI_API_KEY is not set. Every model call will fail until it is configured.",
        )


@app.exception_handler(OrchestrationError)
async def no_data_handler(request: Request, exc: OrchestrationError):
    logger.warning(
        "logistics_no_data",
        path=request.url.path,
        domain=exc.domain.value,
        failed_slices=exc.failed_slices,
    )
    return error_response(502, exc.user_message)


@app.exception_handler(ModelCallError)
async def model_call_handler(request: Request, exc: ModelCallError):
    logger.warning(
        "logistics_model_call_failed",
        path=request.url.path,
        attempts=exc.attempts,
        retryable=exc.retryable,
        error=str(exc),
    )
    return error_response(502, NO_DATA_MESSAGE)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return error_response(exc.status_code, exc.detail)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    return error_response(500, "Internal server error")


app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(logistics.router, tags=["Logistics"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
