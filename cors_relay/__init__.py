"""CORS Relay - stream HTTP requests to a target named in the query string."""

from .config import Settings, get_settings
from .server import RelayServer, create_app

__all__ = ["RelayServer", "Settings", "create_app", "get_settings"]
