"""
Configuration constants for the SoftPOS bridge.

This module provides the protocol constants shared by the terminal
service and the relay: ports, timeouts, status strings and the
network ranges used for terminal discovery.
"""

from typing import Final


# =============================================================================
# System Configuration
# =============================================================================

LOG_DIR: Final[str] = "logs"


# =============================================================================
# Network Configuration
# =============================================================================

TERMINAL_PORT: Final[int] = 8080
RELAY_PORT: Final[int] = 6743

REDIS_HOST: Final[str] = "localhost"
REDIS_PORT: Final[int] = 6379


# =============================================================================
# External Services Configuration
# =============================================================================

LOKI_URL: Final[str] = ""


# =============================================================================
# Sale Configuration
# =============================================================================

DEFAULT_SALE_TIMEOUT_MS: Final[int] = 120_000
FORWARD_TIMEOUT_MARGIN_S: Final[float] = 30.0

SUCCESS_RESULT_CODE: Final[str] = "000"


# =============================================================================
# Discovery Configuration
# =============================================================================

PROBE_TIMEOUT_S: Final[float] = 5.0
MAX_CONCURRENT_PROBES: Final[int] = 64

HOST_SUFFIX_RANGE: Final[tuple[int, int]] = (1, 254)

# Scanned when this node has no private IPv4 address of its own
FALLBACK_NETWORK_PREFIXES: Final[tuple[str, ...]] = (
    "192.168.1",
    "192.168.0",
    "192.168.100",
    "192.168.141",
)


# =============================================================================
# Gateway Hand-off Configuration
# =============================================================================

GATEWAY_APPLICATION_ID: Final[str] = "softpos-bridge"
GATEWAY_TRANSACTION_TYPE: Final[str] = "PURCHASE"
GATEWAY_VERSION_NAME: Final[str] = "1.0.0"

GATEWAY_REQUEST_CHANNEL: Final[str] = "softpos_gateway_requests"
GATEWAY_RESULT_CHANNEL: Final[str] = "softpos_gateway_results"
GATEWAY_RESUBSCRIBE_DELAY_S: Final[float] = 2.0
