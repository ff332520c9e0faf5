"""
Terminal API - Network surface of the terminal service.

Exposes the health probe used by discovery, the sale endpoint used by
the relay and a diagnostic echo WebSocket.
"""

import json
from typing import Any, Callable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from configs import DEFAULT_SALE_TIMEOUT_MS
from core.exceptions import InvalidAmountError
from core.value_objects import SaleRequest
from domain.terminal_session import TerminalSession
from loggers import terminal_logger as logger


class SaleBody(BaseModel):
    """Body of ``POST /pay/sale``."""

    amount: int
    timeout: Optional[int] = None


def create_terminal_app(
    session: TerminalSession,
    default_timeout_ms: int = DEFAULT_SALE_TIMEOUT_MS,
    lifespan: Optional[Callable] = None,
) -> FastAPI:
    """
    Build the terminal FastAPI application.

    Args:
        session: Sale state machine served by the app.
        default_timeout_ms: Sale timeout when the body carries none.
        lifespan: Optional lifespan context for startup and shutdown.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(title="SoftPOS Terminal", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        logger.debug("Health check requested")
        return {"ok": True}

    @app.post("/pay/sale")
    async def pay_sale(body: SaleBody):
        timeout_ms = default_timeout_ms if body.timeout is None else body.timeout
        try:
            request = SaleRequest(amount=body.amount, timeout_ms=timeout_ms)
        except InvalidAmountError as e:
            logger.warning(f"Invalid sale request: {e.message}")
            return JSONResponse(status_code=422, content=e.to_dict())

        logger.info(f"Payment request received: amount={request.amount}")
        response = await session.sale(request)
        return response.to_dict()

    @app.websocket("/ws")
    async def echo(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("WebSocket connection established")
        await websocket.send_text(json.dumps({"type": "HELLO"}))

        try:
            while True:
                text = await websocket.receive_text()
                logger.info(f"WebSocket message received: {text}")
                try:
                    data = json.loads(text)
                except ValueError:
                    data = text
                await websocket.send_text(json.dumps({"type": "ECHO", "data": data}))
        except WebSocketDisconnect:
            logger.info("WebSocket connection closed")

    return app
