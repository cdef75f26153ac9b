"""Config loading: YAML file + environment overrides."""

from content_api.config.settings import (
    get_cors_config,
    get_database_config,
    get_server_config,
    read_config,
)

__all__ = ["get_cors_config", "get_database_config", "get_server_config", "read_config"]
