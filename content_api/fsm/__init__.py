"""Lifecycle state machines."""

from content_api.fsm.bootstrap_fsm import BootstrapFSM, BootstrapState

__all__ = ["BootstrapFSM", "BootstrapState"]
