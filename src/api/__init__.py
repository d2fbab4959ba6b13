"""HTTP query surface over tracking records."""

from src.api.server import create_api_app, start_api_server

__all__ = ["create_api_app", "start_api_server"]
