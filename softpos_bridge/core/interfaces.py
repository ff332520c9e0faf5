"""
Interfaces (Protocols) for the SoftPOS bridge.

Defines contracts for the external payment application and for the
terminal network surface, using ABCs and Protocols for structural
subtyping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from core.value_objects import SaleRequest


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class GatewayRequest:
    """Hand-off document sent to the external payment application."""

    session_id: str
    total_amount: str
    application_id: str
    transaction_type: str
    version_name: str
    print_payment_details: bool = False
    save_detail: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire document."""
        return {
            "applicationId": self.application_id,
            "printPaymentDetails": self.print_payment_details,
            "saveDetail": self.save_detail,
            "sessionId": self.session_id,
            "totalAmount": self.total_amount,
            "transactionType": self.transaction_type,
            "versionName": self.version_name,
        }


# =============================================================================
# Gateway Interface
# =============================================================================


class PaymentGateway(ABC):
    """
    Abstract hand-off to the external payment application.

    ``submit`` only delivers the request. The outcome arrives out of band,
    zero or one time per request, and is fed back to the terminal session
    by the gateway's transport.
    """

    @abstractmethod
    async def submit(self, request: GatewayRequest) -> None:
        """
        Hand a payment request to the external application.

        Args:
            request: Hand-off document.

        Raises:
            GatewayError: If the request could not be delivered.
        """
        ...

    async def start(self) -> None:
        """Start receiving results."""

    async def stop(self) -> None:
        """Stop receiving results and release resources."""


# =============================================================================
# Terminal Network Interface
# =============================================================================


@runtime_checkable
class TerminalTransport(Protocol):
    """Protocol for clients of the terminal network surface."""

    async def check_health(self, address: str) -> bool:
        """
        Probe a terminal's health endpoint.

        Returns:
            True if the terminal answered ``{"ok": true}``.

        Raises:
            Exception: Any transport error; callers treat it as offline.
        """
        ...

    async def sale(self, address: str, request: SaleRequest) -> dict[str, Any]:
        """
        Forward a sale to a terminal and return its response body.

        Raises:
            DeviceUnreachableError: Connection refused or timed out.
            RelayError: Any other failure.
        """
        ...
