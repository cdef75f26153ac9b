"""Exception classes for content_api."""

from typing import Optional


class ContentApiError(Exception):
    """Base exception class for content_api."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class OriginBlocked(ContentApiError):
    """Request origin is present but not in the allowlist."""

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__(f"CORS blocked: {origin}", details={"origin": origin})


class DatabaseConnectError(ContentApiError):
    """Database not reachable (initial connect failed, or queried before connect)."""
