"""Process bootstrap: connect-then-listen sequencer."""

from content_api.engine.bootstrap import Bootstrap, build_bootstrap, run_bootstrap

__all__ = ["Bootstrap", "build_bootstrap", "run_bootstrap"]
