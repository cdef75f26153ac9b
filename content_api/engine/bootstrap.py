"""Startup sequencer: connect the database, then bind the HTTP listener.

The listener is only bound after connect succeeds. On connect failure the error is
logged once and the sequencer ends in FAILED without a listener; the process is
left running (see run_bootstrap).
"""

import argparse
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI

from content_api.config.settings import (
    get_cors_config,
    get_database_config,
    get_server_config,
    read_config,
)
from content_api.core.logging_utils import log_bootstrap_transition
from content_api.db.mongo import MongoConnection
from content_api.fsm.bootstrap_fsm import BootstrapFSM, BootstrapState
from content_api.gating.cors import CorsPolicy
from content_api.gating.origins import resolve_allowed_origins
from content_api.probes.aggregator import ProbeAggregator
from content_api.server.app import create_app

logger = logging.getLogger(__name__)

ServeFn = Callable[[FastAPI, str, int], Awaitable[None]]


async def serve_uvicorn(app: FastAPI, host: str, port: int) -> None:
    """Bind and serve until shutdown (SIGINT/SIGTERM). Raises OSError when the listener cannot start."""
    import uvicorn

    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
    try:
        await server.serve()
    except SystemExit as e:
        # uvicorn exits the process on startup failure (bind error, lifespan error)
        raise OSError(f"HTTP listener failed to start on {host}:{port} (uvicorn exit {e.code})") from e
    if not server.started:
        raise OSError(f"HTTP listener failed to start on {host}:{port}")


class Bootstrap:
    """Runs INITIALIZING -> CONNECTING_DB -> LISTENING | FAILED once per process."""

    def __init__(
        self,
        app: FastAPI,
        connect_db: Callable[[], Awaitable[Any]],
        port: int,
        host: str = "0.0.0.0",
        serve: Optional[ServeFn] = None,
        close_db: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.app = app
        self.host = host
        self.port = port
        self._connect_db = connect_db
        self._close_db = close_db
        self._serve = serve or serve_uvicorn
        self._fsm = BootstrapFSM(
            on_transition=lambda a, b: log_bootstrap_transition(a.value, b.value, extra={"port": self.port})
        )

    @property
    def state(self) -> BootstrapState:
        return self._fsm.current

    # --- State handlers: each runs its logic and returns the next state ---

    async def _handle_initializing(self) -> BootstrapState:
        """INITIALIZING: app and routes are built in __init__. Transition to CONNECTING_DB."""
        return BootstrapState.CONNECTING_DB

    async def _handle_connecting_db(self) -> BootstrapState:
        """CONNECTING_DB: await connect. Returns LISTENING or FAILED."""
        logger.debug("Connecting to database...")
        try:
            await self._connect_db()
        except Exception as e:
            logger.error("Failed to start server: %s", e)
            return BootstrapState.FAILED
        logger.info("Database connected successfully.")
        return BootstrapState.LISTENING

    def _get_state_handlers(self) -> Dict[BootstrapState, Callable[[], Awaitable[BootstrapState]]]:
        return {
            BootstrapState.INITIALIZING: self._handle_initializing,
            BootstrapState.CONNECTING_DB: self._handle_connecting_db,
        }

    async def _listen(self) -> None:
        logger.info("Binding to port: %s", self.port)
        logger.info("Content API running on port %s", self.port)
        try:
            await self._serve(self.app, self.host, self.port)
        finally:
            if self._close_db is not None:
                await self._close_db()

    async def run(self) -> BootstrapState:
        """Drive the FSM to a terminal state; serve while LISTENING. Never raises Exception."""
        handlers = self._get_state_handlers()
        try:
            while not self._fsm.is_terminal():
                current = self._fsm.current
                next_state = await handlers[current]()
                if not self._fsm.transition(next_state):
                    break
            if self._fsm.is_listening():
                await self._listen()
        except Exception as e:
            logger.exception("Unexpected error during startup: %s", e)
            if self._fsm.can_transition_to(BootstrapState.FAILED):
                self._fsm.transition(BootstrapState.FAILED)
        return self._fsm.current


def build_bootstrap(config: dict, serve: Optional[ServeFn] = None) -> Bootstrap:
    """Wire allowlist, CORS policy, Mongo connection, probes and app from config."""
    server_cfg = get_server_config(config)
    cors_cfg = get_cors_config(config)
    db_cfg = get_database_config(config)

    policy = CorsPolicy(resolve_allowed_origins(cors_cfg["client_origin"], cors_cfg["dev_origins"]))
    database = MongoConnection(
        db_cfg["uri"],
        db_name=db_cfg["name"],
        server_selection_timeout_ms=db_cfg["server_selection_timeout_ms"],
    )
    probes = ProbeAggregator(
        database,
        policy,
        collections=db_cfg["collections"],
        client_origin=cors_cfg["client_origin"],
        count_timeout=db_cfg["count_timeout"],
    )
    app = create_app(probes, policy, gzip_minimum_size=server_cfg["gzip_minimum_size"])
    return Bootstrap(
        app,
        connect_db=database.connect,
        port=server_cfg["port"],
        host=server_cfg["host"],
        serve=serve,
        close_db=database.close,
    )


async def run_bootstrap(config_path: Optional[str] = None, stay_alive_on_failure: bool = True) -> BootstrapState:
    """Load config and run the sequencer. FAILED leaves the process idle (no listener) unless told to return."""
    try:
        config, resolved_path = read_config(config_path)
        logger.debug("Config loaded from %s", resolved_path)
        bootstrap = build_bootstrap(config)
    except Exception as e:
        logger.exception("Invalid configuration, server not started: %s", e)
        state = BootstrapState.FAILED
    else:
        state = await bootstrap.run()
    if state == BootstrapState.FAILED and stay_alive_on_failure:
        logger.warning("No HTTP listener bound; process idle until terminated")
        await asyncio.Event().wait()
    return state


def main() -> None:
    parser = argparse.ArgumentParser(description="Content API server")
    parser.add_argument("config", nargs="?", default=None, help="Path to config YAML")
    parser.add_argument(
        "--exit-on-failure",
        action="store_true",
        help="Exit with status 1 when the database connect fails instead of idling",
    )
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=logging.INFO,
    )
    try:
        state = asyncio.run(run_bootstrap(args.config, stay_alive_on_failure=not args.exit_on_failure))
    except KeyboardInterrupt:
        return
    if state == BootstrapState.FAILED:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
