"""Access gating: origin allowlist and CORS decision."""

from content_api.gating.cors import CorsDecision, CorsPolicy, install_cors
from content_api.gating.origins import DEFAULT_DEV_ORIGINS, resolve_allowed_origins

__all__ = ["CorsDecision", "CorsPolicy", "DEFAULT_DEV_ORIGINS", "install_cors", "resolve_allowed_origins"]
