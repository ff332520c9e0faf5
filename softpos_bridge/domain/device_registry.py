"""
Device Registry - Known terminal addresses and the selected terminal.

Records are created and refreshed by discovery sweeps and are never
expired, so the registry only grows. The selected terminal is a plain
address pointing into the registry.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any, Optional

from core.exceptions import DeviceError
from core.value_objects import DeviceRecord, DeviceStatus
from loggers import logger


DEVICE_STATUS_EVENT = "DEVICE_STATUS"


class DeviceRegistry:
    """
    Registry for discovered terminals.

    Maintains one record per address and a single selected address.
    """

    def __init__(self) -> None:
        """Initialize the registry."""
        self._records: dict[str, DeviceRecord] = {}
        self._selected: Optional[str] = None

    def update(
        self,
        address: str,
        status: DeviceStatus,
        error: Optional[str] = None,
        seen_at: Optional[float] = None,
    ) -> DeviceRecord:
        """
        Insert or refresh the record of an address.

        Args:
            address: Terminal address.
            status: Probe outcome.
            error: Probe error message, if any.
            seen_at: Epoch seconds of the probe (default: now).

        Returns:
            The stored record.
        """
        seen_at = time.time() if seen_at is None else seen_at
        current = self._records.get(address)
        if current is None:
            record = DeviceRecord(address=address, last_seen_at=seen_at, status=status, error=error)
        else:
            record = replace(current, last_seen_at=seen_at, status=status, error=error)
        self._records[address] = record
        return record

    def get(self, address: str) -> Optional[DeviceRecord]:
        """Get the record of an address, or None if unknown."""
        return self._records.get(address)

    def get_all(self) -> list[DeviceRecord]:
        """Get all records in insertion order."""
        return list(self._records.values())

    def get_online(self) -> list[DeviceRecord]:
        """Get all records whose last probe succeeded."""
        return [r for r in self._records.values() if r.is_online]

    # =========================================================================
    # Selection
    # =========================================================================

    @property
    def selected(self) -> Optional[str]:
        """Address of the selected terminal."""
        return self._selected

    @property
    def selected_record(self) -> Optional[DeviceRecord]:
        """Record of the selected terminal."""
        if self._selected is None:
            return None
        return self._records.get(self._selected)

    def select(self, address: Optional[str]) -> None:
        """
        Select a terminal, or clear the selection with None.

        Raises:
            DeviceError: If the address has never been discovered.
        """
        if address is not None and address not in self._records:
            raise DeviceError(f"Unknown device: {address}", address=address)
        if address != self._selected:
            logger.info(f"Selected device: {address}")
        self._selected = address

    def should_reselect(self) -> bool:
        """
        Check whether discovery may replace the selected terminal.

        True when nothing is selected, or when the selected terminal's
        record is missing or not online.
        """
        if self._selected is None:
            return True
        record = self._records.get(self._selected)
        return record is None or record.status != DeviceStatus.ONLINE

    # =========================================================================
    # Snapshot
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Build the DEVICE_STATUS event sent to POS clients."""
        return {
            "type": DEVICE_STATUS_EVENT,
            "currentDevice": self._selected,
            "discoveredDevices": [r.to_dict() for r in self._records.values()],
        }

    def __contains__(self, address: str) -> bool:
        return address in self._records

    def __len__(self) -> int:
        return len(self._records)
