"""
Dashboard configuration.

Settings come from environment variables (or .env); each AWS client
and the history slot can be switched to an in-memory mock.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
