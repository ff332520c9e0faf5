"""
Relay Service - Forwards POS sales to the selected terminal.

Failover is manual: when the selected terminal fails, the caller is
told to run discovery again.
"""

from typing import Any

from core.exceptions import NoDeviceError
from core.interfaces import TerminalTransport
from core.value_objects import SaleRequest
from domain.device_registry import DeviceRegistry
from loggers import logger


class RelayService:
    """
    Application service for forwarding sales.

    Coordinates between the device registry and the terminal client.
    """

    def __init__(self, registry: DeviceRegistry, transport: TerminalTransport) -> None:
        """
        Initialize the relay.

        Args:
            registry: Registry holding the selected terminal.
            transport: Client of the terminal network surface.
        """
        self._registry = registry
        self._transport = transport

    async def forward(self, request: SaleRequest) -> dict[str, Any]:
        """
        Forward a sale to the selected terminal.

        Args:
            request: Sale to forward.

        Returns:
            The terminal's response body, unchanged.

        Raises:
            NoDeviceError: No online terminal is selected.
            DeviceUnreachableError: The terminal refused or timed out.
            RelayError: Any other forwarding failure.
        """
        record = self._registry.selected_record
        if record is None or not record.is_online:
            raise NoDeviceError(
                "No terminal found. Please click 'Scan Devices' to discover devices."
            )

        logger.info(f"Payment request: {request.to_dict()} -> {record.address}")
        result = await self._transport.sale(record.address, request)
        logger.info(f"Payment result from {record.address}: {result}")
        return result

    def device_status(self) -> dict[str, Any]:
        """Get the DEVICE_STATUS snapshot."""
        return self._registry.snapshot()
