"""
Terminal Client - httpx client for the terminal network surface.

Used by discovery for ``/health`` probes and by the relay to forward
sales to ``/pay/sale``.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from configs import FORWARD_TIMEOUT_MARGIN_S, PROBE_TIMEOUT_S, TERMINAL_PORT
from core.exceptions import DeviceUnreachableError, RelayError
from core.value_objects import SaleRequest
from loggers import logger


class TerminalClient:
    """
    HTTP client for terminals.

    Attributes:
        port: Port the terminal service listens on.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        port: int = TERMINAL_PORT,
        probe_timeout: float = PROBE_TIMEOUT_S,
        forward_margin: float = FORWARD_TIMEOUT_MARGIN_S,
    ) -> None:
        """
        Initialize the client.

        Args:
            client: Shared httpx client; one is created when omitted.
            port: Terminal service port.
            probe_timeout: Timeout of a health probe in seconds.
            forward_margin: Seconds added to a sale's own timeout.
        """
        self._client = client or httpx.AsyncClient()
        self.port = port
        self._probe_timeout = probe_timeout
        self._forward_margin = forward_margin

    def base_url(self, address: str) -> str:
        """Get the base URL of a terminal."""
        return f"http://{address}:{self.port}"

    async def check_health(self, address: str) -> bool:
        """
        Probe a terminal's health endpoint.

        Returns:
            True if the terminal answered 200 with a truthy ``ok``.
        """
        response = await self._client.get(
            f"{self.base_url(address)}/health",
            timeout=self._probe_timeout,
        )
        if response.status_code != 200:
            return False
        try:
            data = response.json()
        except ValueError:
            return False
        return isinstance(data, dict) and bool(data.get("ok"))

    async def sale(self, address: str, request: SaleRequest) -> dict[str, Any]:
        """
        Forward a sale and return the terminal's response verbatim.

        Raises:
            DeviceUnreachableError: Connection refused or timed out.
            RelayError: Any other HTTP or protocol failure.
        """
        url = f"{self.base_url(address)}/pay/sale"
        logger.info(f"Sending payment to {url}: {request.to_dict()}")

        try:
            response = await self._client.post(
                url,
                json=request.to_dict(),
                timeout=request.timeout_seconds + self._forward_margin,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(f"Device {address} failed: {e!r}")
            raise DeviceUnreachableError(
                f"Device {address} failed. Please click 'Scan Devices' to find alternatives.",
                address=address,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Payment API error: {e!r}")
            raise RelayError(f"Payment failed: {e}") from e

        if not isinstance(data, dict):
            raise RelayError(f"Payment failed: unexpected terminal response {data!r}")
        return data

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
