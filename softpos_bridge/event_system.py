"""
Event system for the terminal service.

This module provides a publish-subscribe event system that carries
gateway results and cancel signals from the gateway transport into
the terminal session.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, Callable, Optional, Union

from loggers import terminal_logger as logger


class EventType(str, Enum):
    """
    Enumeration of event types in the terminal service.

    These events are published when the external payment application
    reports back.
    """

    GATEWAY_RESULT = "gateway_result"
    GATEWAY_CANCELLED = "gateway_cancelled"


class EventPublisher:
    """
    Publisher for sending events to the event queue.

    Attributes:
        event_queue: The asyncio queue to publish events to.
    """

    def __init__(self, event_queue: asyncio.Queue) -> None:
        self.event_queue = event_queue

    async def publish(self, event_type: Union[EventType, str], **data: Any) -> None:
        """
        Publish an event to the queue.

        Args:
            event_type: The type of event to publish.
            **data: Additional event data as keyword arguments.
        """
        event = {"type": event_type, **data}
        await self.event_queue.put(event)

    async def publish_result(self, session_id: Optional[str], payload: Any) -> None:
        """Queue a settlement payload for the sale with ``session_id``."""
        await self.publish(EventType.GATEWAY_RESULT, session_id=session_id, payload=payload)

    async def publish_cancelled(self, session_id: Optional[str]) -> None:
        """Queue a cancel signal for the sale with ``session_id``."""
        await self.publish(EventType.GATEWAY_CANCELLED, session_id=session_id)


class EventConsumer:
    """
    Consumer for processing events from the event queue.

    Handles event dispatch to registered handlers based on event type.

    Attributes:
        event_queue: The asyncio queue to consume events from.
        handlers: Mapping of event types to their handler functions.
        is_consuming: Flag indicating if the consumer is active.
    """

    def __init__(self, event_queue: asyncio.Queue) -> None:
        self.event_queue = event_queue
        self.handlers: dict[Union[EventType, str], list[Callable]] = {}
        self.is_consuming = False
        self._consume_task: asyncio.Task | None = None

    def register_handler(
        self,
        event_type: Union[EventType, str],
        handler: Callable,
    ) -> None:
        """
        Register a handler for an event type.

        Args:
            event_type: The event type to handle.
            handler: The handler function (sync or async).
        """
        self.handlers.setdefault(event_type, []).append(handler)

    async def process_event(self, event: dict[str, Any]) -> None:
        """
        Process a single event by calling all registered handlers.

        Handler errors are logged and do not stop other handlers.

        Args:
            event: The event dictionary containing type and data.
        """
        event_type = event.get("type")
        handlers = self.handlers.get(event_type)
        if not handlers:
            logger.debug(f"No handler for event: {event_type}")
            return

        async_handlers = [h for h in handlers if inspect.iscoroutinefunction(h)]
        sync_handlers = [h for h in handlers if not inspect.iscoroutinefunction(h)]

        if async_handlers:
            results = await asyncio.gather(
                *(handler(event) for handler in async_handlers),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Error handling event {event_type}: {result}")

        for handler in sync_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error handling event {event_type}: {e}")

    async def _consume_loop(self) -> None:
        """Main consumption loop that processes events from the queue."""
        while self.is_consuming:
            try:
                # Use wait_for with timeout to allow checking is_consuming flag
                event = await asyncio.wait_for(
                    self.event_queue.get(),
                    timeout=0.5,
                )
            except asyncio.TimeoutError:
                continue

            try:
                await self.process_event(event)
            except Exception as e:
                logger.error(f"Unexpected error processing event: {e}")
            finally:
                self.event_queue.task_done()

    async def start_consuming(self) -> None:
        """Start the event consumption loop."""
        if self.is_consuming:
            return

        self.is_consuming = True
        self._consume_task = asyncio.create_task(self._consume_loop())

    async def stop_consuming(self) -> None:
        """Stop the event consumption loop and cancel the consumption task."""
        self.is_consuming = False

        if self._consume_task:
            self._consume_task.cancel()
            try:
                await self._consume_task
            except asyncio.CancelledError:
                pass
            self._consume_task = None
