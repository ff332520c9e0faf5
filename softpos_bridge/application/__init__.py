"""
Application layer - Application services and use cases.

Contains:
- Discovery and relay services (POS side)
- Client action routing and the POS WebSocket channel
- Terminal API and terminal service (handheld side)
"""

from .discovery_service import DiscoveryService
from .relay_service import RelayService
from .command_handler import CommandHandler
from .payment_channel import PaymentChannel
from .terminal_api import create_terminal_app
from .terminal_service import TerminalService


__all__ = [
    "DiscoveryService",
    "RelayService",
    "CommandHandler",
    "PaymentChannel",
    "create_terminal_app",
    "TerminalService",
]
