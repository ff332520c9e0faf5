"""
Tests for settings loading and logger setup.
"""

import logging

import pytest

from configs import DEFAULT_SALE_TIMEOUT_MS, FALLBACK_NETWORK_PREFIXES, RELAY_PORT, TERMINAL_PORT
from core.exceptions import DeviceUnreachableError, NoDeviceError
from infrastructure.settings import load_settings
from loggers import LokiHandler, get_logger


class TestSettings:
    """Tests for defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        """Test defaults come from configs."""
        for name in ("TERMINAL_PORT", "RELAY_PORT", "SALE_TIMEOUT_MS", "FALLBACK_PREFIXES"):
            monkeypatch.delenv(f"SOFTPOS_{name}", raising=False)

        settings = load_settings()

        assert settings.terminal.port == TERMINAL_PORT
        assert settings.discovery.terminal_port == TERMINAL_PORT
        assert settings.relay.port == RELAY_PORT
        assert settings.terminal.default_sale_timeout_ms == DEFAULT_SALE_TIMEOUT_MS
        assert settings.discovery.fallback_prefixes == FALLBACK_NETWORK_PREFIXES
        assert settings.gateway.request_channel == "softpos_gateway_requests"

    def test_environment_overrides(self, monkeypatch):
        """Test SOFTPOS_* variables override defaults by type."""
        monkeypatch.setenv("SOFTPOS_TERMINAL_PORT", "9090")
        monkeypatch.setenv("SOFTPOS_PROBE_TIMEOUT", "1.5")
        monkeypatch.setenv("SOFTPOS_FALLBACK_PREFIXES", "10.0.0, 10.0.1,")
        monkeypatch.setenv("SOFTPOS_REDIS_HOST", "redis.local")

        settings = load_settings()

        assert settings.terminal.port == 9090
        assert settings.discovery.terminal_port == 9090
        assert settings.discovery.probe_timeout == 1.5
        assert settings.discovery.fallback_prefixes == ("10.0.0", "10.0.1")
        assert settings.redis.host == "redis.local"

    def test_empty_value_keeps_default(self, monkeypatch):
        """Test an empty variable is ignored."""
        monkeypatch.setenv("SOFTPOS_RELAY_PORT", "")
        assert load_settings().relay.port == RELAY_PORT


class TestErrors:
    """Tests for error codes reported to clients."""

    def test_error_codes(self):
        """Test device errors carry stable codes."""
        assert NoDeviceError("none").code == "NO_DEVICE"
        error = DeviceUnreachableError("gone", address="10.0.0.5")
        assert error.to_dict() == {
            "error": "DEVICE_UNREACHABLE",
            "message": "gone",
            "details": {"device": "10.0.0.5"},
        }


class TestLoggers:
    """Tests for logger construction."""

    def test_file_and_loki_handlers(self, tmp_path):
        """Test a logger gets console, file and Loki handlers."""
        log = get_logger(
            "SOFTPOS_TEST_FULL",
            log_file=str(tmp_path / "nested" / "test.log"),
            loki_url="http://loki.invalid/loki/api/v1/push",
        )

        kinds = {type(h).__name__ for h in log.handlers}
        assert kinds == {"StreamHandler", "RotatingFileHandler", "LokiHandler"}
        assert (tmp_path / "nested").is_dir()
        assert any(isinstance(h, LokiHandler) for h in log.handlers)

        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)

    def test_repeated_calls_reuse_handlers(self):
        """Test handlers are not duplicated."""
        first = get_logger("SOFTPOS_TEST_REUSE")
        second = get_logger("SOFTPOS_TEST_REUSE", level=logging.INFO)

        assert first is second
        assert len(second.handlers) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
