"""CORS gate: allow/deny by request Origin against an immutable allowlist.

Absent Origin (curl, server-to-server, same-origin tools) is allowed; a present
but unlisted Origin is blocked before any handler runs. Preflight (OPTIONS) is
evaluated the same way and answered here with 204 when allowed.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from content_api.core.errors import OriginBlocked

logger = logging.getLogger(__name__)

DEFAULT_METHODS: Tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD")
DEFAULT_HEADERS: Tuple[str, ...] = ("Content-Type", "Authorization")


@dataclass(frozen=True)
class CorsDecision:
    allowed: bool
    origin: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[OriginBlocked] = None


@dataclass(frozen=True)
class CorsPolicy:
    """Allowlist plus the access-control headers echoed to allowed origins."""

    allowed_origins: Tuple[str, ...]
    allow_methods: Tuple[str, ...] = DEFAULT_METHODS
    allow_headers: Tuple[str, ...] = DEFAULT_HEADERS
    allow_credentials: bool = True

    def is_allowed(self, origin: Optional[str]) -> bool:
        return not origin or origin in self.allowed_origins

    def check(self, origin: Optional[str]) -> None:
        """Raise OriginBlocked for a present, unlisted origin."""
        if not self.is_allowed(origin):
            raise OriginBlocked(origin)

    def response_headers(self, origin: str) -> Dict[str, str]:
        headers = {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ",".join(self.allow_methods),
            "Access-Control-Allow-Headers": ",".join(self.allow_headers),
            "Vary": "Origin",
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers

    def decide(self, origin: Optional[str]) -> CorsDecision:
        """Allow (echoing headers for a listed origin) or deny with OriginBlocked."""
        try:
            self.check(origin)
        except OriginBlocked as e:
            return CorsDecision(allowed=False, origin=origin, error=e)
        if not origin:
            return CorsDecision(allowed=True)
        return CorsDecision(allowed=True, origin=origin, headers=self.response_headers(origin))


def install_cors(app: FastAPI, policy: CorsPolicy) -> None:
    """Register the CORS gate as HTTP middleware on app."""

    @app.middleware("http")
    async def cors_gate(request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        decision = policy.decide(origin)
        if not decision.allowed:
            logger.warning("%s (%s %s)", decision.error.message, request.method, request.url.path)
            return PlainTextResponse(decision.error.message, status_code=403)
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=decision.headers)
        response = await call_next(request)
        for name, value in decision.headers.items():
            existing = response.headers.get(name)
            if name == "Vary" and existing and value not in existing:
                value = f"{existing}, {value}"
            response.headers[name] = value
        return response
