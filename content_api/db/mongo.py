"""MongoDB connection (Motor). Owns the connectivity state read by the db probe."""

import json
import logging
from typing import Any, Callable, Dict, Optional

from bson import json_util
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import monitoring

from content_api.core.enums import ConnectivityState
from content_api.core.errors import DatabaseConnectError

logger = logging.getLogger(__name__)

_FALLBACK_DB_NAME = "content"


class _TopologyStateListener(monitoring.TopologyListener):
    """Forwards driver topology changes to the owning connection (called from driver threads)."""

    def __init__(self, connection: "MongoConnection") -> None:
        self._connection = connection

    def opened(self, event: monitoring.TopologyOpenedEvent) -> None:
        pass

    def description_changed(self, event: monitoring.TopologyDescriptionChangedEvent) -> None:
        self._connection._on_topology_change(event.new_description.has_readable_server())

    def closed(self, event: monitoring.TopologyClosedEvent) -> None:
        pass


class MongoConnection:
    """Single client + database handle. connect() pings before reporting CONNECTED.

    After connect the state follows the driver topology: CONNECTED while a readable
    server is known, DISCONNECTED otherwise.
    """

    def __init__(
        self,
        uri: str,
        db_name: Optional[str] = None,
        server_selection_timeout_ms: int = 5000,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self._client: Any = None
        self._db: Any = None
        self._listener = _TopologyStateListener(self)
        self._state = ConnectivityState.DISCONNECTED

    @property
    def db_name(self) -> Optional[str]:
        return self._db.name if self._db is not None else None

    def connection_state(self) -> ConnectivityState:
        return self._state

    async def connect(self) -> None:
        """Create the client and ping. Raises DatabaseConnectError on failure."""
        if self._client is not None:
            return
        self._state = ConnectivityState.CONNECTING
        client = None
        try:
            client = self._client_factory(
                self._uri,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                event_listeners=[self._listener],
            )
            if self._db_name:
                db = client[self._db_name]
            else:
                db = client.get_default_database(_FALLBACK_DB_NAME)
            await db.command("ping")
        except Exception as e:
            self._state = ConnectivityState.DISCONNECTED
            if client is not None:
                client.close()
            raise DatabaseConnectError(f"MongoDB connect failed: {e}") from e
        self._client = client
        self._db = db
        self._state = ConnectivityState.CONNECTED
        logger.info("MongoDB connected (db=%s)", db.name)

    def _on_topology_change(self, readable: bool) -> None:
        """Track server availability once connected. Ignored before connect and while closing."""
        if self._client is None or self._state == ConnectivityState.DISCONNECTING:
            return
        new_state = ConnectivityState.CONNECTED if readable else ConnectivityState.DISCONNECTED
        if new_state != self._state:
            logger.warning("MongoDB state %s -> %s", self._state.name, new_state.name)
            self._state = new_state

    def _require_db(self) -> Any:
        if self._db is None:
            raise DatabaseConnectError("MongoDB not connected")
        return self._db

    async def count_collection(self, name: str) -> int:
        """Estimated document count (collection metadata, no scan)."""
        db = self._require_db()
        return await db[name].estimated_document_count()

    async def db_stats(self) -> Optional[Dict[str, Any]]:
        """dbStats command result as plain JSON (BSON types rendered as relaxed Extended JSON)."""
        db = self._require_db()
        raw = await db.command("dbstats")
        if raw is None:
            return None
        return json.loads(json_util.dumps(raw))

    async def close(self) -> None:
        if self._client is None:
            self._state = ConnectivityState.DISCONNECTED
            return
        self._state = ConnectivityState.DISCONNECTING
        try:
            self._client.close()
        finally:
            self._client = None
            self._db = None
            self._state = ConnectivityState.DISCONNECTED
            logger.info("MongoDB connection closed")
