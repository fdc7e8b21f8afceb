from __future__ import annotations

from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from . import query_interpreter
from .api.routes import shops as shops_routes
from .catalog import default_catalog
from .logging_config import SERVICE_NAME, SERVICE_VERSION, configure_structlog, get_logger
from .metrics import PrometheusMiddleware, get_metrics
from .openai_async import close_async_client
from .settings import settings
from .utils import add_cors, add_request_id_tracing, add_security_headers

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)
logger = get_logger(__name__)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"{SERVICE_NAME}@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "catalog", None) is None:
        app.state.catalog = default_catalog()
    logger.info(
        "app_started",
        catalog_size=len(app.state.catalog),
        interpreter_enabled=settings.interpreter_enabled,
    )
    try:
        yield
    finally:
        await close_async_client()


app = FastAPI(
    title="ClipperConnect Shop Search API",
    version=SERVICE_VERSION,
    description="Barbershop discovery with natural-language search",
    lifespan=lifespan,
)
add_cors(app)
add_security_headers(app)
add_request_id_tracing(app)
app.add_middleware(PrometheusMiddleware)

API_PREFIX = "/v1"

app.include_router(shops_routes.router, prefix=API_PREFIX)


def _interpreter_status() -> str:
    if not settings.interpreter_enabled:
        return "disabled"
    if query_interpreter._circuit_open():
        return "cooling_down"
    return "ready"


@app.get("/health")
async def health():
    catalog = getattr(app.state, "catalog", None)
    checks = {
        "catalog": "ok" if catalog else "empty",
        "interpreter": _interpreter_status(),
    }
    status = "healthy" if catalog else "degraded"
    body = {
        "status": status,
        "checks": checks,
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }
    if settings.DEBUG and catalog:
        body["catalog_size"] = len(catalog)
    return JSONResponse(content=body, status_code=200 if status == "healthy" else 503)


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics."""
    try:
        return get_metrics()
    except Exception:  # pragma: no cover
        logger.exception("metrics_export_failed")
        raise HTTPException(status_code=503, detail="metrics unavailable")
