"""FastAPI app: CORS gate, gzip, /api/health* probes, legacy /api/test, domain routers under /api."""

import logging
from typing import Any, Dict, Iterable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from content_api import __version__
from content_api.gating.cors import CorsPolicy, install_cors
from content_api.probes.aggregator import ProbeAggregator

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def mount_routes(app: FastAPI, routers: Iterable[APIRouter], prefix: str = API_PREFIX) -> None:
    """Mount domain routers (manufacturers, garage levels, ...) under prefix."""
    for router in routers:
        app.include_router(router, prefix=prefix)


def create_app(
    probes: ProbeAggregator,
    cors_policy: CorsPolicy,
    routers: Iterable[APIRouter] = (),
    gzip_minimum_size: Optional[int] = 1000,
) -> FastAPI:
    """Build the app. Middleware and routes are registered here; nothing is bound until bootstrap listens."""
    app = FastAPI(title="Content API", version=__version__)

    if gzip_minimum_size is not None:
        app.add_middleware(GZipMiddleware, minimum_size=gzip_minimum_size)
    # Added last so it is outermost: blocked origins never reach gzip or handlers
    install_cors(app, cors_policy)
    logger.info(
        "CORS allowed origins: %s",
        ", ".join(cors_policy.allowed_origins) if cors_policy.allowed_origins else "(none)",
    )

    @app.get("/api/health")
    def get_health() -> Dict[str, Any]:
        """Featherweight liveness for wake/ping (no DB work)."""
        return probes.liveness()

    @app.get("/api/health/cors")
    def get_health_cors(request: Request) -> JSONResponse:
        payload = probes.cors_echo(request.headers.get("origin"))
        return JSONResponse(content=payload, headers={"X-Seen-Origin": payload["seenOrigin"]})

    @app.get("/api/health/db")
    async def get_health_db() -> JSONResponse:
        """Connection state, per-collection counts, db stats. 500 only when the probe itself fails."""
        payload = await probes.database_stats()
        return JSONResponse(status_code=200 if payload.get("ok") else 500, content=payload)

    @app.get("/api/health/runtime")
    def get_health_runtime() -> Dict[str, Any]:
        return probes.runtime_stats()

    # Legacy simple liveness
    @app.get("/api/test")
    def get_test() -> Dict[str, Any]:
        return {"status": "alive"}

    mount_routes(app, routers)
    return app
