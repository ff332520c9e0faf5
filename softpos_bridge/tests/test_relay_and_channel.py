"""
Tests for the relay side: terminal client, relay service, action routing
and the POS WebSocket channel.
"""

import asyncio
import json

import httpx
import pytest
from websockets.exceptions import ConnectionClosedOK

from application.command_handler import CommandHandler
from application.discovery_service import DiscoveryService
from application.payment_channel import PaymentChannel
from application.relay_service import RelayService
from conftest import SUCCESS_PAYLOAD, LocalTerminalTransport, wait_until
from core.exceptions import DeviceUnreachableError, NoDeviceError, RelayError
from core.value_objects import DeviceStatus, SaleRequest
from domain.device_registry import DeviceRegistry
from infrastructure.settings import DiscoverySettings
from infrastructure.terminal_client import TerminalClient


def make_client(handler) -> TerminalClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TerminalClient(http, port=8080, probe_timeout=1.0, forward_margin=1.0)


class FakeWebSocket:
    """WebSocket stand-in yielding scripted messages and recording sends."""

    def __init__(self, messages, gap: float = 0.01):
        self.messages = messages
        self.gap = gap
        self.sent = []
        self.remote_address = ("127.0.0.1", 50000)

    async def send(self, data):
        self.sent.append(json.loads(data))

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            await asyncio.sleep(self.gap)
            yield message

    def events(self, event_type):
        return [e for e in self.sent if e.get("type") == event_type]


class ClosedWebSocket(FakeWebSocket):
    """WebSocket whose peer has already gone away."""

    async def send(self, data):
        raise ConnectionClosedOK(None, None)


# =============================================================================
# Terminal Client Tests
# =============================================================================


class TestTerminalClient:
    """Tests for the httpx terminal client."""

    @pytest.mark.asyncio
    async def test_health_ok(self):
        """Test a 200 {"ok": true} answer is healthy."""
        def handler(request):
            assert request.url == "http://10.0.0.5:8080/health"
            return httpx.Response(200, json={"ok": True})

        assert await make_client(handler).check_health("10.0.0.5") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"ok": False}),
            httpx.Response(200, json=[1]),
            httpx.Response(200, text="not json"),
            httpx.Response(503, json={"ok": True}),
        ],
    )
    async def test_health_unexpected(self, response):
        """Test other answers are not healthy."""
        assert await make_client(lambda request: response).check_health("10.0.0.5") is False

    @pytest.mark.asyncio
    async def test_sale_posts_body(self):
        """Test a sale is posted and the response returned unchanged."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "APPROVED", "authCode": "000", "rrn": "1"})

        result = await make_client(handler).sale("10.0.0.5", SaleRequest(amount=25000, timeout_ms=5000))

        assert seen == {
            "url": "http://10.0.0.5:8080/pay/sale",
            "body": {"amount": 25000, "timeout": 5000},
        }
        assert result == {"status": "APPROVED", "authCode": "000", "rrn": "1"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [httpx.ConnectError("refused"), httpx.ReadTimeout("slow")],
    )
    async def test_sale_unreachable(self, error):
        """Test refused and timed out connections are DeviceUnreachableError."""
        def handler(request):
            raise error

        with pytest.raises(DeviceUnreachableError) as exc_info:
            await make_client(handler).sale("10.0.0.5", SaleRequest(amount=1))

        assert exc_info.value.code == "DEVICE_UNREACHABLE"
        assert exc_info.value.message == (
            "Device 10.0.0.5 failed. Please click 'Scan Devices' to find alternatives."
        )

    @pytest.mark.asyncio
    async def test_sale_http_error(self):
        """Test an error status is a RelayError."""
        client = make_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(RelayError) as exc_info:
            await client.sale("10.0.0.5", SaleRequest(amount=1))
        assert exc_info.value.message.startswith("Payment failed:")


# =============================================================================
# Relay Service Tests
# =============================================================================


class TestRelayService:
    """Tests for forwarding to the selected terminal."""

    @pytest.mark.asyncio
    async def test_no_selection(self):
        """Test forwarding without a selected terminal fails fast."""
        relay = RelayService(DeviceRegistry(), LocalTerminalTransport(None))

        with pytest.raises(NoDeviceError) as exc_info:
            await relay.forward(SaleRequest(amount=1))
        assert exc_info.value.message == (
            "No terminal found. Please click 'Scan Devices' to discover devices."
        )

    @pytest.mark.asyncio
    async def test_offline_selection(self):
        """Test forwarding to an offline selection fails fast."""
        registry = DeviceRegistry()
        registry.update("10.0.0.5", DeviceStatus.ONLINE)
        registry.select("10.0.0.5")
        registry.update("10.0.0.5", DeviceStatus.OFFLINE)

        with pytest.raises(NoDeviceError):
            await RelayService(registry, LocalTerminalTransport(None)).forward(SaleRequest(amount=1))


# =============================================================================
# Command Handler Tests
# =============================================================================


@pytest.fixture
def registry():
    """Create a registry with one selected online terminal."""
    registry = DeviceRegistry()
    registry.update("192.168.1.23", DeviceStatus.ONLINE, seen_at=1700000000.0)
    registry.select("192.168.1.23")
    return registry


@pytest.fixture
def transport(session):
    """Create an in-process terminal transport."""
    return LocalTerminalTransport(session)


@pytest.fixture
def handler(registry, transport):
    """Create a command handler wired to the in-process terminal."""
    discovery = DiscoveryService(
        registry,
        transport,
        DiscoverySettings(host_range=(23, 23), probe_timeout=0.5),
        prefix_provider=lambda fallback: ["192.168.1"],
    )
    return CommandHandler(RelayService(registry, transport), discovery, default_timeout_ms=2000)


class TestCommandHandler:
    """Tests for client action routing."""

    @pytest.mark.asyncio
    async def test_unknown_action(self, handler):
        """Test unknown actions produce an ERROR event."""
        assert await handler.execute({"action": "REFUND"}) == {
            "type": "ERROR",
            "message": "Unknown action: REFUND",
        }

    @pytest.mark.asyncio
    async def test_missing_amount(self, handler):
        """Test START_PAYMENT requires an amount."""
        event = await handler.execute({"action": "START_PAYMENT"})
        assert event["type"] == "ERROR"
        assert "amount" in event["message"]

    @pytest.mark.asyncio
    async def test_invalid_amount(self, handler, transport):
        """Test a non-positive amount is refused before forwarding."""
        event = await handler.execute({"action": "START_PAYMENT", "amount": -5})
        assert event["type"] == "ERROR"
        assert transport.addresses == []

    @pytest.mark.asyncio
    async def test_payment_result(self, handler, session, gateway):
        """Test START_PAYMENT returns the terminal response as a RESULT."""
        task = asyncio.create_task(handler.execute({"action": "START_PAYMENT", "amount": 25000}))
        await wait_until(lambda: gateway.requests)
        await session.resolve(SUCCESS_PAYLOAD)

        assert await task == {
            "type": "RESULT",
            "status": "APPROVED",
            "authCode": "000",
            "rrn": "999000123456",
        }

    @pytest.mark.asyncio
    async def test_no_device(self, transport):
        """Test START_PAYMENT without a terminal is an ERROR event."""
        registry = DeviceRegistry()
        handler = CommandHandler(
            RelayService(registry, transport),
            DiscoveryService(registry, transport, DiscoverySettings()),
        )
        event = await handler.execute({"action": "START_PAYMENT", "amount": 1})
        assert event == {
            "type": "ERROR",
            "message": "No terminal found. Please click 'Scan Devices' to discover devices.",
        }

    @pytest.mark.asyncio
    async def test_scan_devices(self, handler):
        """Test SCAN_DEVICES answers with a DEVICE_STATUS snapshot."""
        event = await handler.execute({"action": "SCAN_DEVICES"})

        assert event["type"] == "DEVICE_STATUS"
        assert event["currentDevice"] == "192.168.1.23"
        assert [d["ip"] for d in event["discoveredDevices"]] == ["192.168.1.23"]


# =============================================================================
# Payment Channel Tests
# =============================================================================


class TestPaymentChannel:
    """Tests for the POS WebSocket channel."""

    @pytest.mark.asyncio
    async def test_status_sent_on_connect(self, handler, registry):
        """Test a connecting client first receives DEVICE_STATUS."""
        websocket = FakeWebSocket([])
        await PaymentChannel(handler, registry).handle_client(websocket)

        assert websocket.sent[0]["type"] == "DEVICE_STATUS"
        assert websocket.sent[0]["currentDevice"] == "192.168.1.23"

    @pytest.mark.asyncio
    async def test_malformed_message(self, handler, registry):
        """Test malformed JSON and non-object messages become ERROR events."""
        channel = PaymentChannel(handler, registry)
        websocket = FakeWebSocket(["{not json", "[1, 2]"])

        await channel.handle_client(websocket)
        await channel.wait_idle()

        errors = websocket.events("ERROR")
        assert len(errors) == 2
        assert errors[1]["message"] == "Message must be a JSON object"

    @pytest.mark.asyncio
    async def test_second_payment_rejected(self, handler, registry, session, gateway):
        """Test a second START_PAYMENT during a pending sale is REJECTED."""
        channel = PaymentChannel(handler, registry)
        websocket = FakeWebSocket([
            json.dumps({"action": "START_PAYMENT", "amount": 100}),
            json.dumps({"action": "START_PAYMENT", "amount": 200}),
        ])

        await channel.handle_client(websocket)
        await wait_until(lambda: websocket.events("RESULT"))

        assert websocket.events("RESULT") == [
            {"type": "RESULT", "status": "REJECTED", "authCode": "", "rrn": ""},
        ]

        await session.resolve(SUCCESS_PAYLOAD)
        await channel.wait_idle()

        results = websocket.events("RESULT")
        assert [r["status"] for r in results] == ["REJECTED", "APPROVED"]
        assert len(gateway.requests) == 1

    @pytest.mark.asyncio
    async def test_closed_client_does_not_raise(self, handler, registry):
        """Test sending to a closed client is logged, not raised."""
        channel = PaymentChannel(handler, registry)
        websocket = ClosedWebSocket([json.dumps({"action": "REFUND"})])

        await channel.handle_client(websocket)
        await channel.wait_idle()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
