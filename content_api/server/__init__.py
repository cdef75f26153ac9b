"""HTTP surface: app factory and route mount table."""

from content_api.server.app import create_app, mount_routes

__all__ = ["create_app", "mount_routes"]
