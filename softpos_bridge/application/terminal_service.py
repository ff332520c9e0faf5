"""
Terminal Service - Wires the terminal side together.

Owns the event queue between the gateway transport and the terminal
session, and starts and stops both.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from redis.asyncio import Redis

from core.interfaces import PaymentGateway
from domain.terminal_session import TerminalSession
from event_system import EventConsumer, EventPublisher, EventType
from infrastructure.redis_gateway import RedisPaymentGateway
from infrastructure.settings import Settings, get_settings
from loggers import terminal_logger as logger


class TerminalService:
    """
    Facade for the terminal process.

    Gateway results reach the session through the event queue, so the
    transport never touches the correlation slot directly.
    """

    def __init__(
        self,
        redis: Optional[Redis] = None,
        settings: Optional[Settings] = None,
        gateway: Optional[PaymentGateway] = None,
    ) -> None:
        """
        Initialize the terminal service.

        Args:
            redis: Redis client for the default gateway.
            settings: Application settings.
            gateway: Gateway to use instead of the Redis one.
        """
        self._settings = settings or get_settings()

        # Event system
        self._event_queue: asyncio.Queue = asyncio.Queue()
        self.event_publisher = EventPublisher(self._event_queue)
        self._event_consumer = EventConsumer(self._event_queue)

        if gateway is None:
            if redis is None:
                raise ValueError("Either a Redis client or a gateway is required")
            gateway = RedisPaymentGateway(redis, self.event_publisher, self._settings.gateway)
        self.gateway = gateway

        self.session = TerminalSession(gateway, gateway_settings=self._settings.gateway)
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        """Register handlers for gateway events."""
        self._event_consumer.register_handler(
            EventType.GATEWAY_RESULT,
            self._on_gateway_result,
        )
        self._event_consumer.register_handler(
            EventType.GATEWAY_CANCELLED,
            self._on_gateway_cancelled,
        )

    async def _on_gateway_result(self, event: dict[str, Any]) -> None:
        await self.session.resolve(event.get("payload"), event.get("session_id"))

    async def _on_gateway_cancelled(self, event: dict[str, Any]) -> None:
        await self.session.cancel(event.get("session_id"))

    async def start(self) -> None:
        """Start consuming gateway events."""
        await self._event_consumer.start_consuming()
        await self.gateway.start()
        logger.info("Terminal service started")

    async def shutdown(self) -> None:
        """Stop the gateway and the event consumer."""
        try:
            await self.gateway.stop()
        except Exception as e:
            logger.error(f"Error stopping payment gateway: {e}")
        finally:
            await self._event_consumer.stop_consuming()
        logger.info("Terminal service shut down")

    @asynccontextmanager
    async def lifespan(self, app: Any) -> AsyncIterator[None]:
        """FastAPI lifespan running the service alongside the app."""
        await self.start()
        try:
            yield
        finally:
            await self.shutdown()
