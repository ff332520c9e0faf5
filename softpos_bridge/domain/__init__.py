"""
Domain layer - Business logic and domain models.

Contains:
- Settlement payload translation
- Terminal sale state machine
- Terminal device registry
"""

from .result_translator import (
    ResultTranslator,
    translate_result,
)
from .terminal_session import (
    CorrelationSlot,
    SessionPhase,
    TerminalSession,
)
from .device_registry import (
    DeviceRegistry,
)


__all__ = [
    # Settlement
    "ResultTranslator",
    "translate_result",
    # Sale State
    "CorrelationSlot",
    "SessionPhase",
    "TerminalSession",
    # Device Management
    "DeviceRegistry",
]
