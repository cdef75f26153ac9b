"""Unified config: server, cors, database sections.

Defaults: loaded from config/config.yaml.example. Environment variables override
file values (CLIENT_ORIGIN, PORT, MONGO_URI, MONGO_DB_NAME); a .env file in the
working directory is loaded first.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3002

# Lazy-loaded example config (single source of truth for defaults)
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# env var -> (section, key)
_ENV_OVERRIDES = {
    "CLIENT_ORIGIN": ("cors", "client_origin"),
    "PORT": ("server", "port"),
    "MONGO_URI": ("database", "uri"),
    "MONGO_DB_NAME": ("database", "name"),
}


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. Empty dict when the file is not shipped."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        path = _PROJECT_ROOT / "config" / "config.yaml.example"
        if path.exists():
            with open(path, encoding="utf-8") as f:
                _EXAMPLE_CONFIG = yaml.safe_load(f) or {}
        else:
            _EXAMPLE_CONFIG = {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Copy non-empty env values into their config sections."""
    env = os.environ if environ is None else environ
    out = dict(cfg)
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        out[section] = {**(out.get(section) or {}), key: value}
    return out


def read_config(
    config_path: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None,
) -> tuple[dict, str]:
    """Load YAML config merged over the example defaults, then env overrides. Returns (config, resolved_path)."""
    load_dotenv()
    env = os.environ if environ is None else environ
    config_path = config_path or env.get("CONTENT_API_CONFIG", "config/config.yaml")
    if not Path(config_path).exists():
        config_path = str(_PROJECT_ROOT / "config" / "config.yaml.example")
    config_path = str(Path(config_path).resolve())
    file_cfg: Dict[str, Any] = {}
    if Path(config_path).exists():
        with open(config_path, "r", encoding="utf-8") as f:
            file_cfg = yaml.safe_load(f) or {}
    config = _apply_env_overrides(_deep_merge(_load_example_config(), file_cfg), env)
    return config, config_path


def _parse_port(value: Any) -> int:
    if value in (None, ""):
        return DEFAULT_PORT
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid server port %r; using default %s", value, DEFAULT_PORT)
        return DEFAULT_PORT


def get_server_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return host, port (default 3002) and gzip_minimum_size (None disables gzip, 0 compresses everything)."""
    s = (config or {}).get("server") or {}
    gzip_minimum_size = s.get("gzip_minimum_size", 1000)
    return {
        "host": s.get("host") or "0.0.0.0",
        "port": _parse_port(s.get("port")),
        "gzip_minimum_size": int(gzip_minimum_size) if gzip_minimum_size is not None else None,
    }


def get_cors_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return dev_origins (list) and client_origin (production origin, may be empty)."""
    c = (config or {}).get("cors") or {}
    dev_origins: Optional[List[str]] = c.get("dev_origins")
    return {
        "dev_origins": list(dev_origins) if dev_origins is not None else None,
        "client_origin": c.get("client_origin") or "",
    }


def get_database_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return uri, name, collections to count, count_timeout, server_selection_timeout_ms."""
    d = (config or {}).get("database") or {}
    timeout = d.get("count_timeout")
    return {
        "uri": d.get("uri") or "mongodb://localhost:27017/content",
        "name": d.get("name") or None,
        "collections": [c for c in (d.get("collections") or []) if c],
        "count_timeout": float(timeout) if timeout is not None else None,
        "server_selection_timeout_ms": int(d.get("server_selection_timeout_ms") or 5000),
    }
