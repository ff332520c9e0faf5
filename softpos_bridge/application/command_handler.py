"""
Command Handler - Routes POS client actions to the relay.

Provides clean action routing with validation and error handling.
Every action produces exactly one event for the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Awaitable

from application.discovery_service import DiscoveryService
from application.relay_service import RelayService
from configs import DEFAULT_SALE_TIMEOUT_MS
from core.exceptions import BridgeError
from core.value_objects import SaleRequest
from loggers import logger


# Type alias for action handlers
ActionHandlerFunc = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]

START_PAYMENT = "START_PAYMENT"
SCAN_DEVICES = "SCAN_DEVICES"

RESULT_EVENT = "RESULT"
ERROR_EVENT = "ERROR"


def error_event(message: str) -> dict[str, Any]:
    """Build an ERROR event."""
    return {"type": ERROR_EVENT, "message": message}


@dataclass
class ActionDefinition:
    """
    Definition of a client action.

    Attributes:
        name: Action name.
        handler: Handler function receiving the whole message.
        required_args: Message fields that must be present.
        description: Human-readable description.
    """

    name: str
    handler: ActionHandlerFunc
    required_args: list[str]
    description: str = ""


class CommandHandler:
    """
    Routes client actions to their handlers.

    Failures never escape: they become ERROR events.
    """

    def __init__(
        self,
        relay: RelayService,
        discovery: DiscoveryService,
        default_timeout_ms: int = DEFAULT_SALE_TIMEOUT_MS,
    ) -> None:
        """
        Initialize the command handler.

        Args:
            relay: Relay used to forward sales.
            discovery: Discovery used for device scans.
            default_timeout_ms: Sale timeout when the client sends none.
        """
        self._relay = relay
        self._discovery = discovery
        self._default_timeout_ms = default_timeout_ms
        self._actions: dict[str, ActionDefinition] = {}
        self._register_default_actions()

    def _register_default_actions(self) -> None:
        """Register all default action handlers."""
        self.register(
            START_PAYMENT,
            self._start_payment,
            ["amount"],
            "Forward a sale to the selected terminal",
        )
        self.register(
            SCAN_DEVICES,
            self._scan_devices,
            [],
            "Discover terminals on the local network",
        )

    def register(
        self,
        action: str,
        handler: ActionHandlerFunc,
        required_args: list[str],
        description: str = "",
    ) -> None:
        """
        Register an action handler.

        Args:
            action: The name of the action.
            handler: The async handler function.
            required_args: List of required message fields.
            description: Human-readable description.
        """
        self._actions[action] = ActionDefinition(
            name=action,
            handler=handler,
            required_args=required_args,
            description=description,
        )

    async def execute(self, message: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a client action.

        Args:
            message: Decoded client message with an ``action`` field.

        Returns:
            The event to push to the client.
        """
        action = message.get("action")

        if action not in self._actions:
            logger.warning(f"Unknown action: {action}")
            return error_event(f"Unknown action: {action}")

        definition = self._actions[action]

        missing = [arg for arg in definition.required_args if message.get(arg) is None]
        if missing:
            return error_event(f"Missing required arguments: {missing}")

        try:
            return await definition.handler(message)
        except BridgeError as e:
            logger.warning(f"Action '{action}' failed: {e.code}: {e.message}")
            return error_event(e.message)
        except Exception as e:
            logger.exception(f"Error executing action '{action}': {e}")
            return error_event(f"Error processing {action}: {e}")

    async def _start_payment(self, message: dict[str, Any]) -> dict[str, Any]:
        request = SaleRequest.from_message(message, self._default_timeout_ms)
        result = await self._relay.forward(request)
        return {**result, "type": RESULT_EVENT}

    async def _scan_devices(self, message: dict[str, Any]) -> dict[str, Any]:
        await self._discovery.scan_network()
        return self._relay.device_status()
