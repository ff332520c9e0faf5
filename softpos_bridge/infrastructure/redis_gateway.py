"""
Redis Payment Gateway - Hand-off to the external payment application.

Requests are published on the gateway request channel. The payment
application answers on the result channel with either a settlement
payload or a cancel signal; those answers are re-published as events
for the terminal session.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from core.exceptions import GatewayError
from core.interfaces import GatewayRequest, PaymentGateway
from event_system import EventPublisher
from infrastructure.settings import GatewaySettings, get_settings
from loggers import terminal_logger as logger


class RedisPaymentGateway(PaymentGateway):
    """
    Gateway carried over Redis pub/sub.

    Result channel messages are JSON objects:
    ``{"sessionId": ..., "paymentResult": ...}`` or
    ``{"sessionId": ..., "cancelled": true}``. ``sessionId`` is optional.
    """

    def __init__(
        self,
        redis: Redis,
        publisher: EventPublisher,
        settings: Optional[GatewaySettings] = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            redis: Redis client instance.
            publisher: Publisher for gateway result events.
            settings: Channel names.
        """
        self._redis = redis
        self._publisher = publisher
        self._settings = settings or get_settings().gateway
        self._listen_task: Optional[asyncio.Task] = None

    async def submit(self, request: GatewayRequest) -> None:
        """Publish a payment request for the external application."""
        document = json.dumps(request.to_dict())
        try:
            receivers = await self._redis.publish(self._settings.request_channel, document)
        except RedisError as e:
            raise GatewayError(f"Payment application unreachable: {e}") from e

        logger.info(f"Payment request {request.session_id} handed off for {request.total_amount}")
        if not receivers:
            logger.warning(
                f"No payment application subscribed to {self._settings.request_channel}"
            )

    async def start(self) -> None:
        """Start listening on the result channel."""
        if self._listen_task is None:
            self._listen_task = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        """Stop listening on the result channel."""
        if self._listen_task:
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Result listener ended with error: {e}")
            self._listen_task = None

    async def _listen(self) -> None:
        delay = self._settings.resubscribe_delay
        while True:
            try:
                await self._consume_results()
                logger.warning(f"Result channel subscription ended, resubscribing in {delay}s")
            except RedisError as e:
                logger.error(f"Result channel error, resubscribing in {delay}s: {e}")
            await asyncio.sleep(delay)

    async def _consume_results(self) -> None:
        pubsub = self._redis.pubsub()
        try:
            await pubsub.subscribe(self._settings.result_channel)
            logger.info(f"Listening for payment results on channel: {self._settings.result_channel}")

            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self.handle_message(message.get("data"))
        finally:
            try:
                await pubsub.unsubscribe(self._settings.result_channel)
                await pubsub.aclose()
            except RedisError as e:
                logger.warning(f"Result channel cleanup failed: {e}")

    async def handle_message(self, raw: Any) -> None:
        """
        Turn one result channel message into a gateway event.

        Args:
            raw: Message data as received from Redis.
        """
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Gateway message parsing error: {e}")
            return
        if not isinstance(message, dict):
            logger.error(f"Gateway message is not an object: {raw!r}")
            return

        session_id = message.get("sessionId")

        if message.get("cancelled"):
            await self._publisher.publish_cancelled(session_id)
        elif "paymentResult" in message:
            await self._publisher.publish_result(session_id, message["paymentResult"])
        else:
            logger.warning(f"Unrecognized gateway message: {message}")
