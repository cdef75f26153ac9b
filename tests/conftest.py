"""Pytest fixtures for Content API tests."""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
import yaml

# Ensure project root is in path for content_api imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from content_api.core.enums import ConnectivityState  # noqa: E402
from content_api.gating.cors import CorsPolicy  # noqa: E402
from content_api.gating.origins import resolve_allowed_origins  # noqa: E402

PROD_ORIGIN = "https://content.example.app"


class FakeDatabase:
    """In-memory stand-in for MongoConnection. Collections mapped to an Exception raise on count."""

    def __init__(
        self,
        state: ConnectivityState = ConnectivityState.CONNECTED,
        counts: Optional[Dict[str, Any]] = None,
        stats: Any = None,
        name: Optional[str] = "content",
    ):
        self.state = state
        self.counts = counts or {}
        self.stats = stats
        self.name = name
        self.count_calls = []
        self.stats_calls = 0

    @property
    def db_name(self) -> Optional[str]:
        return self.name

    def connection_state(self) -> ConnectivityState:
        if isinstance(self.state, Exception):
            raise self.state
        return self.state

    async def count_collection(self, name: str) -> int:
        self.count_calls.append(name)
        value = self.counts.get(name, LookupError(f"ns not found: {name}"))
        if isinstance(value, Exception):
            raise value
        return value

    async def db_stats(self) -> Optional[Dict[str, Any]]:
        self.stats_calls += 1
        if isinstance(self.stats, Exception):
            raise self.stats
        return self.stats


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def project_root() -> Path:
    return _project_root()


@pytest.fixture
def config(project_root: Path) -> dict:
    """Example config dict from YAML."""
    with open(project_root / "config" / "config.yaml.example", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def cors_policy() -> CorsPolicy:
    return CorsPolicy(resolve_allowed_origins(PROD_ORIGIN + "/"))


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase(
        counts={"manufacturers": 12, "garagelevels": 40, "legendstore": 3},
        stats={"db": "content", "collections": 3, "dataSize": 2048},
    )
