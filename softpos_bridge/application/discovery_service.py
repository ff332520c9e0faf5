"""
Discovery Service - Finds reachable terminals on the local network.

A sweep probes every host of the candidate /24 prefixes, records each
outcome in the device registry and then applies the selection policy.
Sweeps only run when a client asks for one.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from typing import Callable, Iterable, Optional

from core.interfaces import TerminalTransport
from core.value_objects import DeviceStatus
from domain.device_registry import DeviceRegistry
from infrastructure.settings import DiscoverySettings, get_settings
from loggers import logger


PrefixProvider = Callable[[Iterable[str]], list[str]]


# =============================================================================
# Local Network Ranges
# =============================================================================


def local_ipv4_addresses() -> set[str]:
    """Collect this node's IPv4 addresses."""
    addresses: set[str] = set()

    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, family=socket.AF_INET)
        addresses.update(info[4][0] for info in infos)
    except OSError as e:
        logger.debug(f"Hostname lookup failed: {e}")

    # Address of the default route interface; UDP connect sends nothing
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            addresses.add(s.getsockname()[0])
    except OSError as e:
        logger.debug(f"Default route lookup failed: {e}")

    return addresses


def network_prefixes(addresses: Iterable[str]) -> list[str]:
    """
    Derive /24 prefixes from private, non-loopback IPv4 addresses.

    Example:
        ``["192.168.1.23", "127.0.0.1"]`` -> ``["192.168.1"]``
    """
    prefixes: list[str] = []
    for address in sorted(addresses):
        try:
            ip = ipaddress.IPv4Address(address)
        except ValueError:
            continue
        if ip.is_loopback or ip.is_link_local or not ip.is_private:
            continue
        prefix = address.rsplit(".", 1)[0]
        if prefix not in prefixes:
            prefixes.append(prefix)
    return prefixes


def local_network_prefixes(fallback: Iterable[str]) -> list[str]:
    """Prefixes of this node's networks, or the fallback list if none."""
    return network_prefixes(local_ipv4_addresses()) or list(fallback)


# =============================================================================
# Discovery Service
# =============================================================================


class DiscoveryService:
    """
    Sweeps candidate addresses for terminals.

    Probes run concurrently, capped by a semaphore. The first online
    terminal in probe completion order wins selection, so which terminal
    is chosen among several depends on network timing.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        transport: TerminalTransport,
        settings: Optional[DiscoverySettings] = None,
        prefix_provider: PrefixProvider = local_network_prefixes,
    ) -> None:
        """
        Initialize the discovery service.

        Args:
            registry: Registry updated by sweeps.
            transport: Client used for health probes.
            settings: Discovery settings.
            prefix_provider: Returns the /24 prefixes to sweep.
        """
        self._registry = registry
        self._transport = transport
        self._settings = settings or get_settings().discovery
        self._prefix_provider = prefix_provider
        self._scan_lock = asyncio.Lock()

    def candidate_addresses(self) -> list[str]:
        """Every host address of the candidate prefixes."""
        prefixes = self._prefix_provider(self._settings.fallback_prefixes)
        logger.info(f"Scanning network ranges: {', '.join(prefixes)}")

        first, last = self._settings.host_range
        return [
            f"{prefix}.{suffix}"
            for prefix in prefixes
            for suffix in range(first, last + 1)
        ]

    async def scan_network(self) -> list[str]:
        """
        Sweep the local network.

        Returns:
            Online addresses in probe completion order.
        """
        return await self.scan_addresses(self.candidate_addresses())

    async def scan_addresses(self, addresses: Iterable[str]) -> list[str]:
        """
        Sweep an explicit list of addresses and apply the selection policy.

        Concurrent sweeps run one after another.

        Returns:
            Online addresses in probe completion order.
        """
        async with self._scan_lock:
            found: list[str] = []
            semaphore = asyncio.Semaphore(self._settings.max_concurrent_probes)

            async def probe_with_limit(address: str) -> None:
                async with semaphore:
                    online, error = await self._probe(address)
                status = DeviceStatus.ONLINE if online else DeviceStatus.OFFLINE
                self._registry.update(address, status, error=error)
                if online:
                    logger.info(f"Terminal found at {address}:{self._settings.terminal_port}")
                    found.append(address)

            await asyncio.gather(*(probe_with_limit(a) for a in addresses))

            self._apply_selection(found)
            return found

    async def _probe(self, address: str) -> tuple[bool, Optional[str]]:
        try:
            online = await asyncio.wait_for(
                self._transport.check_health(address),
                timeout=self._settings.probe_timeout,
            )
        except Exception as e:
            return False, str(e) or e.__class__.__name__
        return bool(online), None if online else "Unexpected health response"

    def _apply_selection(self, found: list[str]) -> None:
        if not found:
            logger.info("No terminals found on network")
            self._registry.select(None)
            return

        logger.info(f"Found {len(found)} terminal(s): {', '.join(found)}")
        if self._registry.should_reselect():
            self._registry.select(found[0])
