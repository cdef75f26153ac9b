"""Structured logging for bootstrap transitions and probe outcomes."""

import logging
import uuid
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _ensure_trace_id(extra: dict) -> str:
    trace_id = extra.get("trace_id")
    if not trace_id:
        trace_id = str(uuid.uuid4())[:8]
        extra["trace_id"] = trace_id
    return trace_id


def _format(kind: str, extra: Dict[str, Any]) -> str:
    return kind + " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))


def log_bootstrap_transition(
    from_state: str,
    to_state: str,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log bootstrap state transition: trace_id, from_state, to_state."""
    extra = dict(extra or {})
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["from_state"] = from_state
    extra["to_state"] = to_state
    logger.info(_format("bootstrap_transition", extra))


def log_probe_result(
    probe: str,
    ok: bool,
    counts: Optional[Dict[str, Optional[int]]] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log a probe outcome at debug level; unavailable collections listed by name."""
    extra = dict(extra or {})
    extra["probe"] = probe
    extra["ok"] = ok
    if counts is not None:
        extra["collections"] = len(counts)
        missing = sorted(name for name, n in counts.items() if n is None)
        if missing:
            extra["unavailable"] = ",".join(missing)
    logger.debug(_format("probe_result", extra))
