"""
Pytest configuration for SoftPOS bridge tests.

This conftest.py adds the softpos_bridge directory to sys.path
so that tests can import modules properly, and provides shared
gateway fakes and payloads.
"""

import asyncio
import json
import sys
from pathlib import Path


# Add the softpos_bridge directory to sys.path for proper imports
bridge_path = Path(__file__).parent.parent
if str(bridge_path) not in sys.path:
    sys.path.insert(0, str(bridge_path))

import pytest  # noqa: E402

from core.interfaces import GatewayRequest, PaymentGateway  # noqa: E402
from core.value_objects import SaleRequest  # noqa: E402
from domain.terminal_session import TerminalSession  # noqa: E402


SUCCESS_PAYLOAD = json.dumps({
    "resultCode": "000",
    "terminalID": "12345",
    "maskedCardNumber": "411111******1111",
    "dateOfTransaction": "20240101",
    "timeOfTransaction": "120000",
    "transactionAmount": "25000",
    "referenceID": "999000123456",
    "retrievalReferencedNumber": "000321",
})

DECLINE_PAYLOAD = json.dumps({
    "resultCode": "051",
    "resultDescription": "Insufficient funds",
})


class RecordingGateway(PaymentGateway):
    """Gateway that records hand-offs and never answers by itself."""

    def __init__(self) -> None:
        self.requests: list[GatewayRequest] = []

    async def submit(self, request: GatewayRequest) -> None:
        self.requests.append(request)


class FailingGateway(PaymentGateway):
    """Gateway whose hand-off always fails."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def submit(self, request: GatewayRequest) -> None:
        raise self.error


class LocalTerminalTransport:
    """Terminal transport calling a TerminalSession in-process."""

    def __init__(self, session: TerminalSession) -> None:
        self.session = session
        self.addresses: list[str] = []

    async def check_health(self, address: str) -> bool:
        return True

    async def sale(self, address: str, request: SaleRequest) -> dict:
        self.addresses.append(address)
        response = await self.session.sale(request)
        return response.to_dict()


async def wait_until(predicate, attempts: int = 200, delay: float = 0.005) -> None:
    """Yield to the event loop until the predicate holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(delay)
    raise AssertionError("Condition not reached")


@pytest.fixture
def gateway():
    """Create a recording gateway."""
    return RecordingGateway()


@pytest.fixture
def session(gateway):
    """Create a terminal session on top of the recording gateway."""
    return TerminalSession(gateway)
