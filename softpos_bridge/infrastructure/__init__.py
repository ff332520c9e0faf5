"""
Infrastructure layer - External dependencies and implementations.

Contains:
- Configuration
- Terminal HTTP client (httpx)
- Payment gateway over Redis pub/sub

The client and gateway modules are imported directly
(``infrastructure.terminal_client``, ``infrastructure.redis_gateway``);
they depend on the logging setup, which itself reads the settings
exported here.
"""

from .settings import (
    Settings,
    get_settings,
    load_settings,
)


__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "load_settings",
]
