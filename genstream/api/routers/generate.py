import asyncio
import json
import logging
from typing import Any, Dict
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from genstream.api.deps import get_gateway
from genstream.core.errors import GatewayError, ProviderError
from genstream.schemas.events import ErrorEvent, to_wire
from genstream.schemas.generate import GenerateMessage, GenerateResponse
from genstream.services.gateway import GenerationGateway, Session

router = APIRouter(tags=["generate"])
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerateResponse)
async def generate(msg: GenerateMessage, gateway: GenerationGateway = Depends(get_gateway)):
    try:
        return await gateway.generate(msg)
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except GatewayError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _pump_events(websocket: WebSocket, session: Session) -> None:
    # single writer: events go out in the order the gateway queued them
    while True:
        event = await session.events.get()
        try:
            await websocket.send_json(to_wire(event))
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("session %s: socket gone, dropping outbound events", session.id)
            return


def _frame_text(message: Dict[str, Any]) -> str:
    # binary frames are accepted when they hold UTF-8 JSON
    text = message.get("text")
    if text is not None:
        return text
    data = message.get("bytes")
    if data is None:
        raise ValueError("empty websocket frame")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError("binary frame is not valid UTF-8") from e


def _parse_message(raw: str) -> GenerateMessage:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"message is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("message must be a JSON object")
    try:
        return GenerateMessage.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"invalid message: {e.errors()[0].get('msg', 'validation failed')}") from e


@router.websocket("/ws/generate")
async def generate_stream(websocket: WebSocket, gateway: GenerationGateway = Depends(get_gateway)):
    """
    One websocket is one session. Each inbound frame starts a generation (cancelling the
    previous one); chunk/done/error events are pushed back as they arrive. Closing the
    socket cancels whatever is still in flight.
    """
    await websocket.accept()
    session_id = str(uuid4())
    session = gateway.open_session(session_id)
    sender = asyncio.create_task(_pump_events(websocket, session), name=f"ws-send:{session_id}")
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            try:
                msg = _parse_message(_frame_text(message))
            except ValueError as e:
                gateway.cancel(session_id)
                session.emit(ErrorEvent(error=str(e)))
                continue
            gateway.handle_message(session_id, msg)
    except WebSocketDisconnect:
        logger.info("client disconnected, session %s", session_id)
    finally:
        gateway.close_session(session_id)
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
