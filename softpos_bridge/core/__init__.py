"""
Core module - Foundation layer with no external dependencies.

Contains:
- Exceptions
- Interfaces (Protocols)
- Value Objects
"""

from .exceptions import (
    BridgeError,
    DeviceError,
    NoDeviceError,
    DeviceUnreachableError,
    PaymentError,
    InvalidAmountError,
    RelayError,
    GatewayError,
)
from .interfaces import (
    GatewayRequest,
    PaymentGateway,
    TerminalTransport,
)
from .value_objects import (
    DeviceRecord,
    DeviceStatus,
    SaleRequest,
    SaleResponse,
    SaleStatus,
    Transaction,
    TransactionStatus,
)


__all__ = [
    # Exceptions
    "BridgeError",
    "DeviceError",
    "NoDeviceError",
    "DeviceUnreachableError",
    "PaymentError",
    "InvalidAmountError",
    "RelayError",
    "GatewayError",
    # Interfaces
    "GatewayRequest",
    "PaymentGateway",
    "TerminalTransport",
    # Value Objects
    "DeviceRecord",
    "DeviceStatus",
    "SaleRequest",
    "SaleResponse",
    "SaleStatus",
    "Transaction",
    "TransactionStatus",
]
