"""Content API: CORS gating, health probes and startup sequencing."""

__version__ = "0.1.0"
