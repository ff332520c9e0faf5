"""
Application settings.

Frozen dataclass sections aggregated into a single ``Settings`` object.
Defaults come from ``configs``; ``SOFTPOS_*`` environment variables
override them when the singleton is first built.
"""

import os
from dataclasses import dataclass, field
from typing import Final

from configs import (
    DEFAULT_SALE_TIMEOUT_MS,
    FALLBACK_NETWORK_PREFIXES,
    FORWARD_TIMEOUT_MARGIN_S,
    GATEWAY_APPLICATION_ID,
    GATEWAY_REQUEST_CHANNEL,
    GATEWAY_RESUBSCRIBE_DELAY_S,
    GATEWAY_RESULT_CHANNEL,
    GATEWAY_TRANSACTION_TYPE,
    GATEWAY_VERSION_NAME,
    HOST_SUFFIX_RANGE,
    LOG_DIR,
    LOKI_URL,
    MAX_CONCURRENT_PROBES,
    PROBE_TIMEOUT_S,
    REDIS_HOST,
    REDIS_PORT,
    RELAY_PORT,
    TERMINAL_PORT,
)


ENV_PREFIX: Final[str] = "SOFTPOS_"


# =============================================================================
# Configuration Classes
# =============================================================================


@dataclass(frozen=True)
class RedisSettings:
    """Redis connection settings."""

    host: str = REDIS_HOST
    port: int = REDIS_PORT
    decode_responses: bool = True


@dataclass(frozen=True)
class TerminalSettings:
    """Terminal service (handheld side) settings."""

    host: str = "0.0.0.0"
    port: int = TERMINAL_PORT
    default_sale_timeout_ms: int = DEFAULT_SALE_TIMEOUT_MS


@dataclass(frozen=True)
class GatewaySettings:
    """Hand-off contract with the external payment application."""

    application_id: str = GATEWAY_APPLICATION_ID
    transaction_type: str = GATEWAY_TRANSACTION_TYPE
    version_name: str = GATEWAY_VERSION_NAME
    request_channel: str = GATEWAY_REQUEST_CHANNEL
    result_channel: str = GATEWAY_RESULT_CHANNEL
    resubscribe_delay: float = GATEWAY_RESUBSCRIBE_DELAY_S


@dataclass(frozen=True)
class DiscoverySettings:
    """Terminal discovery settings."""

    terminal_port: int = TERMINAL_PORT
    probe_timeout: float = PROBE_TIMEOUT_S
    max_concurrent_probes: int = MAX_CONCURRENT_PROBES
    host_range: tuple[int, int] = HOST_SUFFIX_RANGE
    fallback_prefixes: tuple[str, ...] = FALLBACK_NETWORK_PREFIXES


@dataclass(frozen=True)
class RelaySettings:
    """Relay service (POS side) settings."""

    host: str = "localhost"
    port: int = RELAY_PORT
    default_payment_timeout_ms: int = DEFAULT_SALE_TIMEOUT_MS
    forward_margin: float = FORWARD_TIMEOUT_MARGIN_S


@dataclass(frozen=True)
class ServiceSettings:
    """Logging and external service settings."""

    loki_url: str = LOKI_URL
    log_dir: str = LOG_DIR


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    redis: RedisSettings = field(default_factory=RedisSettings)
    terminal: TerminalSettings = field(default_factory=TerminalSettings)
    gateway: GatewaySettings = field(default_factory=GatewaySettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    relay: RelaySettings = field(default_factory=RelaySettings)
    services: ServiceSettings = field(default_factory=ServiceSettings)


# =============================================================================
# Environment Overrides
# =============================================================================


def _env(name: str, default):
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None or value == "":
        return default
    if isinstance(default, bool):
        return value.lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, tuple):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return value


def load_settings() -> Settings:
    """
    Build settings from defaults and environment variables.

    Returns:
        Settings instance.
    """
    redis = RedisSettings()
    terminal = TerminalSettings()
    gateway = GatewaySettings()
    relay = RelaySettings()
    discovery = DiscoverySettings()
    services = ServiceSettings()

    return Settings(
        redis=RedisSettings(
            host=_env("REDIS_HOST", redis.host),
            port=_env("REDIS_PORT", redis.port),
        ),
        terminal=TerminalSettings(
            host=_env("TERMINAL_HOST", terminal.host),
            port=_env("TERMINAL_PORT", terminal.port),
            default_sale_timeout_ms=_env(
                "SALE_TIMEOUT_MS", terminal.default_sale_timeout_ms
            ),
        ),
        gateway=GatewaySettings(
            resubscribe_delay=_env("RESUBSCRIBE_DELAY", gateway.resubscribe_delay),
        ),
        discovery=DiscoverySettings(
            terminal_port=_env("TERMINAL_PORT", discovery.terminal_port),
            probe_timeout=_env("PROBE_TIMEOUT", discovery.probe_timeout),
            max_concurrent_probes=_env(
                "MAX_CONCURRENT_PROBES", discovery.max_concurrent_probes
            ),
            fallback_prefixes=_env("FALLBACK_PREFIXES", discovery.fallback_prefixes),
        ),
        relay=RelaySettings(
            host=_env("RELAY_HOST", relay.host),
            port=_env("RELAY_PORT", relay.port),
            forward_margin=_env("FORWARD_MARGIN", relay.forward_margin),
        ),
        services=ServiceSettings(
            loki_url=_env("LOKI_URL", services.loki_url),
            log_dir=_env("LOG_DIR", services.log_dir),
        ),
    )


# =============================================================================
# Settings Singleton
# =============================================================================


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
