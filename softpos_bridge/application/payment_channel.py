"""
Payment Channel - WebSocket boundary with POS clients.

Each text message is handled in its own task, so a client can be told
REJECTED while its previous sale is still waiting on the terminal.
A client that disconnects does not cancel its pending sale; the result
is simply not delivered.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from websockets.exceptions import ConnectionClosed

from application.command_handler import CommandHandler, error_event
from domain.device_registry import DeviceRegistry
from loggers import logger


class PaymentChannel:
    """Serves the relay protocol to connected POS clients."""

    def __init__(self, handler: CommandHandler, registry: DeviceRegistry) -> None:
        """
        Initialize the channel.

        Args:
            handler: Routes client actions.
            registry: Source of DEVICE_STATUS snapshots.
        """
        self._handler = handler
        self._registry = registry
        self._tasks: set[asyncio.Task] = set()

    async def handle_client(self, websocket: Any) -> None:
        """
        Serve one client connection until it closes.

        Args:
            websocket: Connection accepted by the websockets server.
        """
        peer = getattr(websocket, "remote_address", None)
        logger.info(f"WS connected: {peer}")

        await self._send(websocket, self._registry.snapshot())

        try:
            async for raw in websocket:
                task = asyncio.create_task(self._dispatch(websocket, raw))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        except ConnectionClosed as e:
            logger.info(f"WS connection lost: {e}")
        finally:
            logger.info(f"WS closed: {peer}")

    async def handle_message(self, raw: Any) -> dict[str, Any]:
        """
        Decode and execute one client message.

        Returns:
            The event to push back to the client.
        """
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"WS message error: {e}")
            return error_event(str(e))

        if not isinstance(message, dict):
            return error_event("Message must be a JSON object")

        logger.info(f"WS message: {message}")
        return await self._handler.execute(message)

    async def wait_idle(self) -> None:
        """Wait until every in-flight message has been answered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _dispatch(self, websocket: Any, raw: Any) -> None:
        try:
            event = await self.handle_message(raw)
        except Exception as e:
            logger.exception(f"WS message error: {e}")
            event = error_event(str(e))
        await self._send(websocket, event)

    async def _send(self, websocket: Any, event: dict[str, Any]) -> None:
        try:
            await websocket.send(json.dumps(event))
        except ConnectionClosed:
            logger.warning(f"Client gone, {event.get('type')} event not delivered")
