# src/processed_or_not/main.py
import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from processed_or_not.api.dependencies import (
    get_http_client,
    get_progress_broadcaster,
    get_progress_store,
)
from processed_or_not.api.v1.router import api_router
from processed_or_not.core.config import get_settings
from processed_or_not.core.metrics import REQUEST_COUNT
from processed_or_not.core.security import limiter

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        REQUEST_COUNT.labels(
            method=request.method,
            path=request.url.path,
            status_code=str(response.status_code),
        ).inc()
        return response


async def _sweep_progress(interval_seconds: float) -> None:
    store = get_progress_store()
    while True:
        await asyncio.sleep(interval_seconds)
        store.purge_expired()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: Broadcaster am Store registrieren, Ablauf-Sweep starten
    get_progress_broadcaster()
    sweeper = asyncio.create_task(_sweep_progress(settings.progress_sweep_interval_seconds))
    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield
    # Shutdown: Gracefully schließen
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    client = get_http_client()
    await client.aclose()
    get_http_client.cache_clear()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Rate Limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

# Metrics Middleware
app.add_middleware(MetricsMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["X-API-Key", "Content-Type"],
)

app.include_router(api_router)


@app.get("/healthz", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok", "version": settings.app_version}


@app.get("/readyz", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    return {"status": "ready"}


@app.get("/metrics", tags=["Monitoring"])
async def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
