"""
Value Objects for the SoftPOS bridge.

Immutable objects that represent values in the domain.
Value objects are compared by value, not by identity.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from configs import DEFAULT_SALE_TIMEOUT_MS, SUCCESS_RESULT_CODE
from core.exceptions import InvalidAmountError


# =============================================================================
# Enums
# =============================================================================


class TransactionStatus(Enum):
    """Settlement status reported by the external payment application."""

    AUTH = auto()
    SETTLED = auto()
    SETTLE_FAILED = auto()


class SaleStatus(str, Enum):
    """Outcome of a sale request as seen by the POS client."""

    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    TIMEOUT = "TIMEOUT"
    REJECTED = "REJECTED"


class DeviceStatus(str, Enum):
    """Reachability of a discovered terminal."""

    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


# =============================================================================
# Sale Request
# =============================================================================


@dataclass(frozen=True)
class SaleRequest:
    """
    A sale to be settled by the terminal.

    Attributes:
        amount: Amount in minor currency units.
        timeout_ms: How long the caller is willing to wait for settlement.
    """

    amount: int
    timeout_ms: int = DEFAULT_SALE_TIMEOUT_MS

    def __post_init__(self) -> None:
        """Validate the request."""
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidAmountError(f"Amount must be an integer: {self.amount!r}")
        if self.amount <= 0:
            raise InvalidAmountError(f"Invalid sale amount: {self.amount}")
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int):
            raise InvalidAmountError(f"Timeout must be an integer: {self.timeout_ms!r}")
        if self.timeout_ms <= 0:
            raise InvalidAmountError(f"Invalid sale timeout: {self.timeout_ms}")

    @property
    def timeout_seconds(self) -> float:
        """Timeout in seconds."""
        return self.timeout_ms / 1000

    @classmethod
    def from_message(
        cls,
        data: dict[str, Any],
        default_timeout_ms: int = DEFAULT_SALE_TIMEOUT_MS,
    ) -> "SaleRequest":
        """
        Build a request from a decoded client message.

        A missing, null or zero ``timeout`` falls back to the default.
        """
        return cls(
            amount=data.get("amount"),
            timeout_ms=data.get("timeout") or default_timeout_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire form used by the terminal's ``/pay/sale`` endpoint."""
        return {"amount": self.amount, "timeout": self.timeout_ms}


# =============================================================================
# Transaction
# =============================================================================


@dataclass(frozen=True)
class Transaction:
    """
    Canonical settlement record built from a raw gateway payload.

    Attributes:
        status: Settlement status.
        amount: Transaction amount as reported by the gateway.
        response_code: Gateway result code ("000" on success).
        reference_no: Retrieval reference number returned to the POS.
        trace: Trace (STAN) number.
        terminal_no: Terminal identifier.
        settle_fail_reason: Gateway description of a failure.
        time: Date and time of the transaction.
        mask_pan: Masked card number.
    """

    status: TransactionStatus
    amount: str = "0"
    response_code: str = ""
    reference_no: str = ""
    trace: str = ""
    terminal_no: str = ""
    settle_fail_reason: str = ""
    time: str = ""
    mask_pan: str = ""

    def is_success(self) -> bool:
        """Check whether the gateway approved the transaction."""
        return self.response_code == SUCCESS_RESULT_CODE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.name,
            "amount": self.amount,
            "responseCode": self.response_code,
            "referenceNo": self.reference_no,
            "trace": self.trace,
            "terminalNo": self.terminal_no,
            "settleFailReason": self.settle_fail_reason,
            "time": self.time,
            "maskPan": self.mask_pan,
        }


# =============================================================================
# Sale Response
# =============================================================================


@dataclass(frozen=True)
class SaleResponse:
    """
    Terminal answer to a sale request.

    Attributes:
        status: Sale outcome.
        auth_code: Gateway result code, empty when no result arrived.
        rrn: Retrieval reference number, empty when no result arrived.
    """

    status: SaleStatus
    auth_code: str = ""
    rrn: str = ""

    @classmethod
    def from_transaction(cls, transaction: Optional[Transaction]) -> "SaleResponse":
        """
        Classify a settled transaction.

        A missing transaction (unreadable payload) is a decline with
        empty fields.
        """
        if transaction is None:
            return cls(status=SaleStatus.DECLINED)
        status = SaleStatus.APPROVED if transaction.is_success() else SaleStatus.DECLINED
        return cls(
            status=status,
            auth_code=transaction.response_code,
            rrn=transaction.reference_no,
        )

    @classmethod
    def declined(cls) -> "SaleResponse":
        """Create a decline with empty fields."""
        return cls(status=SaleStatus.DECLINED)

    @classmethod
    def timed_out(cls) -> "SaleResponse":
        """Create a timeout response."""
        return cls(status=SaleStatus.TIMEOUT)

    @classmethod
    def rejected(cls) -> "SaleResponse":
        """Create a response for a sale refused because another is in flight."""
        return cls(status=SaleStatus.REJECTED)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``/pay/sale`` response body."""
        return {
            "status": self.status.value,
            "authCode": self.auth_code,
            "rrn": self.rrn,
        }


# =============================================================================
# Device Record
# =============================================================================


@dataclass(frozen=True)
class DeviceRecord:
    """
    Last known state of a terminal address.

    Attributes:
        address: IPv4 address of the terminal.
        last_seen_at: Epoch seconds of the last probe.
        status: Probe outcome.
        error: Probe error message, if any.
    """

    address: str
    last_seen_at: float = 0.0
    status: DeviceStatus = DeviceStatus.UNKNOWN
    error: Optional[str] = None

    @property
    def is_online(self) -> bool:
        """Check if the last probe succeeded."""
        return self.status == DeviceStatus.ONLINE

    def to_dict(self) -> dict[str, Any]:
        """Convert to the client-facing device entry."""
        return {
            "ip": self.address,
            "status": self.status.value,
            "lastSeen": int(self.last_seen_at * 1000),
        }
