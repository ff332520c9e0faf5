"""
Custom exceptions for the SoftPOS bridge.

Provides a hierarchy of typed exceptions for better error handling
and more informative error messages.
"""

from typing import Any, Optional


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            code: Optional error code for programmatic handling.
            details: Optional additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Device Errors
# =============================================================================


class DeviceError(BridgeError):
    """Base exception for terminal device errors."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.address = address
        if address:
            self.details["device"] = address


class NoDeviceError(DeviceError):
    """No online terminal is currently selected."""

    default_code = "NO_DEVICE"


class DeviceUnreachableError(DeviceError):
    """The selected terminal refused the connection or timed out."""

    default_code = "DEVICE_UNREACHABLE"


# =============================================================================
# Payment Errors
# =============================================================================


class PaymentError(BridgeError):
    """Base exception for payment-related errors."""

    pass


class InvalidAmountError(PaymentError):
    """Invalid sale amount or timeout."""

    pass


class RelayError(PaymentError):
    """Forwarding a sale to the terminal failed."""

    pass


# =============================================================================
# Gateway Errors
# =============================================================================


class GatewayError(BridgeError):
    """The external payment application could not be reached."""

    pass
