"""
Process entry points for the relay and the terminal.

``run_relay`` serves POS clients over WebSocket and forwards their sales
to the terminal selected by discovery. ``run_terminal`` serves the
terminal network surface on the handheld and hands sales to the
external payment application over Redis pub/sub.
"""

import asyncio

import httpx
import uvicorn
import websockets
from redis.asyncio import Redis

from application.command_handler import CommandHandler
from application.discovery_service import DiscoveryService
from application.payment_channel import PaymentChannel
from application.relay_service import RelayService
from application.terminal_api import create_terminal_app
from application.terminal_service import TerminalService
from domain.device_registry import DeviceRegistry
from infrastructure.settings import get_settings
from infrastructure.terminal_client import TerminalClient
from loggers import logger, terminal_logger


# =============================================================================
# Relay
# =============================================================================


async def relay_main() -> None:
    """
    Main entry point for the relay service.

    Builds the registry, discovery and relay, then serves POS clients
    until cancelled. Discovery only runs when a client asks for a scan.
    """
    settings = get_settings()
    registry = DeviceRegistry()

    async with httpx.AsyncClient() as http:
        client = TerminalClient(
            http,
            port=settings.discovery.terminal_port,
            probe_timeout=settings.discovery.probe_timeout,
            forward_margin=settings.relay.forward_margin,
        )
        discovery = DiscoveryService(registry, client, settings.discovery)
        relay = RelayService(registry, client)
        handler = CommandHandler(
            relay,
            discovery,
            default_timeout_ms=settings.relay.default_payment_timeout_ms,
        )
        channel = PaymentChannel(handler, registry)

        async with websockets.serve(
            channel.handle_client,
            settings.relay.host,
            settings.relay.port,
        ):
            logger.info(f"Bridge up at ws://{settings.relay.host}:{settings.relay.port}")
            try:
                await asyncio.Future()
            finally:
                await channel.wait_idle()


def run_relay() -> None:
    """Run the relay until interrupted."""
    try:
        asyncio.run(relay_main())
    except KeyboardInterrupt:
        logger.info("Relay stopped by user")


# =============================================================================
# Terminal
# =============================================================================


def terminal_main() -> None:
    """Build the terminal service and run it under uvicorn."""
    settings = get_settings()

    redis = Redis(
        host=settings.redis.host,
        port=settings.redis.port,
        decode_responses=settings.redis.decode_responses,
    )
    service = TerminalService(redis=redis, settings=settings)
    app = create_terminal_app(
        service.session,
        default_timeout_ms=settings.terminal.default_sale_timeout_ms,
        lifespan=service.lifespan,
    )

    terminal_logger.info(
        f"Terminal server starting on http://{settings.terminal.host}:{settings.terminal.port}"
    )
    uvicorn.run(app, host=settings.terminal.host, port=settings.terminal.port)


def run_terminal() -> None:
    """Run the terminal until interrupted."""
    try:
        terminal_main()
    except KeyboardInterrupt:
        terminal_logger.info("Terminal stopped by user")
