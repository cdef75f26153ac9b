"""Origin allowlist: local dev origins plus the configured production origin."""

from typing import Iterable, Optional, Tuple

DEFAULT_DEV_ORIGINS: Tuple[str, ...] = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def normalize_origin(origin: Optional[str]) -> str:
    """Strip surrounding whitespace and trailing slashes. None -> ''."""
    return (origin or "").strip().rstrip("/")


def resolve_allowed_origins(
    production_origin: Optional[str],
    dev_origins: Optional[Iterable[str]] = None,
) -> Tuple[str, ...]:
    """Build the effective allowlist: dev origins, then the production origin.

    Every entry goes through normalize_origin. Empty entries are dropped and
    duplicates keep their first position. A missing production origin is omitted.
    """
    candidates = [normalize_origin(o) for o in (DEFAULT_DEV_ORIGINS if dev_origins is None else dev_origins)]
    candidates.append(normalize_origin(production_origin))
    seen = set()
    out = []
    for origin in candidates:
        if not origin or origin in seen:
            continue
        seen.add(origin)
        out.append(origin)
    return tuple(out)
