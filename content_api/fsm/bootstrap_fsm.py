"""Bootstrap lifecycle FSM: INITIALIZING -> CONNECTING_DB -> LISTENING | FAILED.

Transition implementation (engine/bootstrap.py):
- INITIALIZING -> CONNECTING_DB: _handle_initializing (app + routes already built)
- CONNECTING_DB -> LISTENING: _handle_connecting_db (connect success)
- CONNECTING_DB -> FAILED: _handle_connecting_db (connect fail; listener never bound)
- INITIALIZING -> FAILED: unexpected error before the connect attempt
- LISTENING -> FAILED: serving raised (e.g. bind error)
LISTENING and FAILED end the handler loop.
"""

import enum
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class BootstrapState(str, enum.Enum):
    """Startup states. FAILED = process alive, no HTTP listener."""

    INITIALIZING = "initializing"
    CONNECTING_DB = "connecting_db"
    LISTENING = "listening"
    FAILED = "failed"


# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[BootstrapState, set[BootstrapState]] = {
    BootstrapState.INITIALIZING: {BootstrapState.CONNECTING_DB, BootstrapState.FAILED},
    BootstrapState.CONNECTING_DB: {BootstrapState.LISTENING, BootstrapState.FAILED},
    BootstrapState.LISTENING: {BootstrapState.FAILED},
    BootstrapState.FAILED: set(),
}


class BootstrapFSM:
    """Tracks bootstrap state and validates transitions."""

    def __init__(
        self,
        on_transition: Optional[Callable[[BootstrapState, BootstrapState], None]] = None,
    ):
        self._current = BootstrapState.INITIALIZING
        self._on_transition = on_transition

    @property
    def current(self) -> BootstrapState:
        return self._current

    def can_transition_to(self, to_state: BootstrapState) -> bool:
        return to_state in _TRANSITIONS.get(self._current, set())

    def transition(self, to_state: BootstrapState) -> bool:
        """
        Transition to new state if valid. Returns True on success, False otherwise.
        Calls on_transition(from, to) callback if provided.
        """
        if not self.can_transition_to(to_state):
            logger.warning(
                "Invalid transition: %s -> %s (allowed: %s)",
                self._current.value,
                to_state.value,
                [s.value for s in _TRANSITIONS.get(self._current, set())],
            )
            return False
        from_state = self._current
        self._current = to_state
        logger.debug("State: %s -> %s", from_state.value, to_state.value)
        if self._on_transition:
            try:
                self._on_transition(from_state, to_state)
            except Exception as e:
                logger.debug("on_transition callback error: %s", e)
        return True

    def is_terminal(self) -> bool:
        """True once startup has settled (LISTENING or FAILED); no further handlers run."""
        return self._current in (BootstrapState.LISTENING, BootstrapState.FAILED)

    def is_listening(self) -> bool:
        return self._current == BootstrapState.LISTENING
