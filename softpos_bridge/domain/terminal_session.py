"""
Terminal Session - Single-flight sale state machine.

Holds at most one correlation slot per terminal. A sale request opens the
slot, hands the payment to the external gateway and waits until either the
gateway result resolves the slot or the caller's timeout expires. Whichever
happens first wins; the other is ignored.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from core.interfaces import GatewayRequest, PaymentGateway
from core.value_objects import SaleRequest, SaleResponse, SaleStatus, Transaction
from domain.result_translator import RawPayload, ResultTranslator
from infrastructure.settings import GatewaySettings, get_settings
from loggers import terminal_logger as logger


# =============================================================================
# Session Phases
# =============================================================================


class SessionPhase(Enum):
    """Phases of a terminal sale."""

    IDLE = auto()                 # No sale in flight
    AWAITING_RESULT = auto()      # Gateway invoked, waiting for its result
    COMPLETED_SUCCESS = auto()    # Gateway approved the sale
    COMPLETED_FAILURE = auto()    # Gateway declined or failed
    TIMED_OUT = auto()            # No result before the caller's deadline


_PHASE_BY_STATUS = {
    SaleStatus.APPROVED: SessionPhase.COMPLETED_SUCCESS,
    SaleStatus.DECLINED: SessionPhase.COMPLETED_FAILURE,
    SaleStatus.TIMEOUT: SessionPhase.TIMED_OUT,
}


# =============================================================================
# Correlation Slot
# =============================================================================


@dataclass
class CorrelationSlot:
    """
    The one sale currently awaiting a gateway result.

    Attributes:
        token: Correlation token, sent to the gateway as ``sessionId``.
        request: The sale being settled.
        future: Resolved with the translated Transaction (None if unreadable).
        opened_at: Monotonic time the slot was opened.
    """

    token: str
    request: SaleRequest
    future: asyncio.Future
    opened_at: float = field(default_factory=time.monotonic)

    @property
    def age(self) -> float:
        """Seconds since the slot was opened."""
        return time.monotonic() - self.opened_at


# =============================================================================
# Terminal Session
# =============================================================================


class TerminalSession:
    """
    Single-flight correlation between sale requests and gateway results.

    The slot is shared by the request path (``sale``) and the gateway
    callback path (``resolve``/``cancel``). Every check, resolution and
    release of the slot happens under one lock; waiting for the result
    happens outside of it.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        translator: Optional[ResultTranslator] = None,
        gateway_settings: Optional[GatewaySettings] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            gateway: Hand-off to the external payment application.
            translator: Settlement payload translator.
            gateway_settings: Hand-off document constants.
        """
        self._gateway = gateway
        self._translator = translator or ResultTranslator()
        self._gateway_settings = gateway_settings or get_settings().gateway
        self._lock = asyncio.Lock()
        self._slot: Optional[CorrelationSlot] = None
        self._phase = SessionPhase.IDLE

    @property
    def phase(self) -> SessionPhase:
        """Get the current phase."""
        return self._phase

    @property
    def is_busy(self) -> bool:
        """Check if a sale is in flight."""
        return self._slot is not None

    @property
    def pending_token(self) -> Optional[str]:
        """Correlation token of the sale in flight, if any."""
        return self._slot.token if self._slot else None

    # =========================================================================
    # Request Path
    # =========================================================================

    async def sale(self, request: SaleRequest) -> SaleResponse:
        """
        Settle a sale through the external gateway.

        Args:
            request: Sale to settle.

        Returns:
            REJECTED if another sale is in flight, otherwise APPROVED,
            DECLINED or TIMEOUT.
        """
        slot = await self._open_slot(request)
        if slot is None:
            logger.warning(
                f"Sale of {request.amount} rejected: "
                f"sale {self.pending_token} is still in flight"
            )
            return SaleResponse.rejected()

        try:
            response = await self._await_outcome(slot)
            self._phase = _PHASE_BY_STATUS[response.status]
            logger.info(
                f"Sale {slot.token} finished: {response.status.value} "
                f"(code={response.auth_code or '-'}, rrn={response.rrn or '-'})"
            )
            return response
        finally:
            await self._release(slot)

    async def _open_slot(self, request: SaleRequest) -> Optional[CorrelationSlot]:
        async with self._lock:
            if self._slot is not None:
                return None

            slot = CorrelationSlot(
                token=uuid.uuid4().hex,
                request=request,
                future=asyncio.get_running_loop().create_future(),
            )
            self._slot = slot
            self._phase = SessionPhase.AWAITING_RESULT

            logger.info(
                f"Sale {slot.token} accepted: amount={request.amount}, "
                f"timeout={request.timeout_ms}ms"
            )
            return slot

    async def _await_outcome(self, slot: CorrelationSlot) -> SaleResponse:
        try:
            transaction = await asyncio.wait_for(
                self._settle(slot),
                timeout=slot.request.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Sale {slot.token} timed out after "
                f"{slot.age:.1f}s (limit {slot.request.timeout_ms}ms)"
            )
            return SaleResponse.timed_out()
        except Exception as e:
            logger.error(f"Sale {slot.token} failed during gateway hand-off: {e}")
            return SaleResponse.declined()

        return SaleResponse.from_transaction(transaction)

    async def _settle(self, slot: CorrelationSlot) -> Optional[Transaction]:
        await self._gateway.submit(self.build_gateway_request(slot))
        return await slot.future

    async def _release(self, slot: CorrelationSlot) -> None:
        async with self._lock:
            if not slot.future.done():
                slot.future.cancel()
            if self._slot is slot:
                self._slot = None
                self._phase = SessionPhase.IDLE

    def build_gateway_request(self, slot: CorrelationSlot) -> GatewayRequest:
        """Build the hand-off document for a slot."""
        settings = self._gateway_settings
        return GatewayRequest(
            session_id=slot.token,
            total_amount=str(slot.request.amount),
            application_id=settings.application_id,
            transaction_type=settings.transaction_type,
            version_name=settings.version_name,
        )

    # =========================================================================
    # Callback Path
    # =========================================================================

    async def resolve(self, payload: RawPayload, token: Optional[str] = None) -> bool:
        """
        Deliver a settlement payload from the gateway.

        Args:
            payload: Raw settlement payload.
            token: Correlation token echoed by the gateway, if any. Without
                a token the payload is matched to the sale in flight.

        Returns:
            True if the payload resolved a pending sale.
        """
        transaction = self._translator.translate(payload)
        if transaction is None:
            logger.warning("Unreadable settlement payload, resolving as decline")

        async with self._lock:
            slot = self._match(token)
            if slot is None:
                logger.warning(
                    f"Settlement result discarded: no pending sale for token {token}"
                )
                return False
            if slot.future.done():
                logger.info(f"Late settlement result for sale {slot.token} ignored")
                return False
            slot.future.set_result(transaction)

        if transaction is not None:
            outcome = "SUCCESS" if transaction.is_success() else "FAILED"
            logger.info(
                f"Sale {slot.token} settlement {outcome}: "
                f"amount={transaction.amount}, code={transaction.response_code}, "
                f"reason={transaction.settle_fail_reason or '-'}"
            )
        return True

    async def cancel(self, token: Optional[str] = None) -> bool:
        """
        Record a cancel signal from the gateway.

        The gateway produces no result for a cancelled payment, so the
        pending sale is left to end by its timeout.

        Returns:
            True if the signal matched the sale in flight.
        """
        async with self._lock:
            slot = self._match(token)

        if slot is None:
            logger.info(f"Cancel signal discarded: no pending sale for token {token}")
            return False

        logger.warning(f"Payment cancelled in gateway for sale {slot.token}")
        return True

    def _match(self, token: Optional[str]) -> Optional[CorrelationSlot]:
        slot = self._slot
        if slot is None:
            return None
        if token is not None and token != slot.token:
            return None
        return slot
