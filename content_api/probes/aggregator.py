"""Diagnostic probes behind /api/health*: liveness, cors echo, database stats, runtime stats.

Every probe returns a flat dict with a top-level "ok" flag. Per-collection counts
and the database stats read are isolated: a failure there becomes None in the
payload. Only a failure around them (e.g. reading the connection state) yields
ok=False, which the HTTP layer maps to 500.
"""

import asyncio
import logging
import os
import platform
import time
from typing import Any, Dict, Iterable, List, Optional, Protocol

import psutil

from content_api.core.enums import ConnectivityState
from content_api.core.logging_utils import log_probe_result
from content_api.gating.cors import CorsPolicy

logger = logging.getLogger(__name__)

SERVICE_NAME = "content"
NO_ORIGIN = "(none)"

_MB = 1024 * 1024


class DatabaseProbe(Protocol):
    """What the probes need from the database connection."""

    @property
    def db_name(self) -> Optional[str]: ...

    def connection_state(self) -> ConnectivityState: ...

    async def count_collection(self, name: str) -> Optional[int]: ...

    async def db_stats(self) -> Optional[Dict[str, Any]]: ...


def _heap_bytes(mem: Any) -> int:
    """Heap-ish figure from psutil memory_info: data segment (Linux), private bytes (Windows), else rss."""
    for attr in ("data", "private"):
        value = getattr(mem, attr, None)
        if value is not None:
            return int(value)
    return int(mem.rss)


class ProbeAggregator:
    """Request-scoped diagnostics. Nothing is cached between calls."""

    def __init__(
        self,
        database: Optional[DatabaseProbe],
        cors_policy: CorsPolicy,
        collections: Iterable[str] = (),
        client_origin: Optional[str] = None,
        count_timeout: Optional[float] = None,
    ) -> None:
        self._database = database
        self._cors_policy = cors_policy
        self._collections: List[str] = list(collections)
        self._client_origin = client_origin or None
        self._count_timeout = count_timeout
        self._process = psutil.Process()

    def liveness(self) -> Dict[str, Any]:
        """Wake/ping path. Must not touch the database."""
        return {"ok": True, "service": SERVICE_NAME}

    def cors_echo(self, origin: Optional[str]) -> Dict[str, Any]:
        return {
            "ok": True,
            "allowedOrigins": list(self._cors_policy.allowed_origins),
            "seenOrigin": origin or NO_ORIGIN,
        }

    async def _count(self, name: str) -> Optional[int]:
        try:
            n = await self._database.count_collection(name)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug("count %s failed: %s", name, e)
            return None
        return int(n) if n is not None else None

    async def _count_all(self) -> Dict[str, Optional[int]]:
        """Fan out one count per collection; wait for all of them to settle."""
        if not self._collections:
            return {}
        tasks = {name: asyncio.ensure_future(self._count(name)) for name in self._collections}
        if self._count_timeout is None:
            results = await asyncio.gather(*tasks.values())
            return dict(zip(tasks.keys(), results))
        done, pending = await asyncio.wait(tasks.values(), timeout=self._count_timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("%d collection count(s) exceeded %.1fs; reported as unavailable", len(pending), self._count_timeout)
        return {name: (task.result() if task in done else None) for name, task in tasks.items()}

    async def _stats(self) -> Optional[Dict[str, Any]]:
        try:
            return await self._database.db_stats()
        except Exception as e:
            logger.debug("db stats failed: %s", e)
            return None

    async def database_stats(self) -> Dict[str, Any]:
        """Connection state, per-collection counts and db stats. Queries only run when connected."""
        try:
            if self._database is None:
                state = ConnectivityState.DISCONNECTED
                db_name = None
            else:
                state = ConnectivityState(self._database.connection_state())
                db_name = self._database.db_name or None
            counts: Dict[str, Optional[int]] = {}
            stats: Optional[Dict[str, Any]] = None
            if state == ConnectivityState.CONNECTED:
                counts = await self._count_all()
                stats = await self._stats()
        except Exception as e:
            logger.exception("database_stats probe failed: %s", e)
            log_probe_result("db", ok=False)
            return {"ok": False, "error": str(e)}
        log_probe_result("db", ok=True, counts=counts, extra={"state": state.name})
        return {
            "ok": True,
            "mongoState": int(state),
            "dbName": db_name,
            "counts": counts,
            "stats": stats,
        }

    def runtime_stats(self) -> Dict[str, Any]:
        """Uptime, memory (whole MB), cwd and configured production origin."""
        mem = self._process.memory_info()
        uptime = max(0.0, time.time() - self._process.create_time())
        return {
            "ok": True,
            "python": platform.python_version(),
            "uptimeSec": int(round(uptime)),
            "rssMB": int(round(mem.rss / _MB)),
            "heapUsedMB": int(round(_heap_bytes(mem) / _MB)),
            "cwd": os.getcwd(),
            "envClientOrigin": self._client_origin,
        }
