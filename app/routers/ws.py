"""Live chat over a single WebSocket endpoint.

Frames in both directions are JSON objects ``{"event": name, "data": {...}}``.
Client events: ``join_chat_room``, ``send_message``, ``mark_message_read``,
``leave_chat_room``. Server events: ``joined_chat_room``, ``user_joined``,
``receive_message``, ``message_read``, ``user_left``, ``left_chat_room`` and
``error``. Errors are reported on the socket and never close it.
"""

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.errors import DomainError
from app.db.session import get_db
from app.routers.chat import persist_message
from app.schemas.chat import MessageRead
from app.schemas.realtime import JoinRoomFrame, LeaveRoomFrame, MarkReadFrame, SendMessageFrame
from app.services import chat
from app.services.realtime import ConnectionManager

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


async def _error(manager: ConnectionManager, connection_id: str, message: str, error: str | None = None) -> None:
    payload = {"message": message}
    if error:
        payload["error"] = error
    await manager.send(connection_id, "error", payload)


async def on_join(manager: ConnectionManager, db: Session, connection_id: str, data: dict) -> None:
    frame = JoinRoomFrame.model_validate(data)
    await run_in_threadpool(chat.get_room, db, frame.chat_room_id)
    previous = manager.leave(connection_id)
    if previous and previous.room_id != frame.chat_room_id:
        await manager.broadcast(previous.room_id, "user_left", {"userId": previous.user_id, "chatRoomId": previous.room_id})
    manager.join(connection_id, frame.user_id, frame.chat_room_id)
    payload = {"userId": frame.user_id, "chatRoomId": frame.chat_room_id}
    await manager.send(connection_id, "joined_chat_room", payload)
    await manager.broadcast(frame.chat_room_id, "user_joined", payload, exclude=connection_id)
    logger.info(
        "chat_room_joined",
        extra={"connection_id": connection_id, "room_size": manager.room_size(frame.chat_room_id), **payload},
    )


async def on_send(manager: ConnectionManager, db: Session, connection_id: str, data: dict) -> None:
    frame = SendMessageFrame.model_validate(data)
    state = manager.membership(connection_id)
    if state is None or state.room_id != frame.chat_room_id:
        await _error(manager, connection_id, "Join the chat room first", "NOT_IN_ROOM")
        return
    if frame.sender_id != state.user_id:
        await _error(manager, connection_id, "Sender does not match the joined user", "SENDER_MISMATCH")
        return
    message: MessageRead = await run_in_threadpool(
        persist_message, db, frame.chat_room_id, frame.sender_id, frame.content, frame.message_type
    )
    # The sender gets the echo too, so its view follows the stored message.
    await manager.broadcast(frame.chat_room_id, "receive_message", message.model_dump(mode="json", by_alias=True))


async def on_mark_read(manager: ConnectionManager, db: Session, connection_id: str, data: dict) -> None:
    frame = MarkReadFrame.model_validate(data)
    await run_in_threadpool(chat.mark_read, db, frame.message_id, frame.user_id)
    state = manager.membership(connection_id)
    if state and state.room_id:
        await manager.broadcast(
            state.room_id,
            "message_read",
            {"messageId": frame.message_id, "userId": frame.user_id},
            exclude=connection_id,
        )


async def on_leave(manager: ConnectionManager, db: Session, connection_id: str, data: dict) -> None:
    LeaveRoomFrame.model_validate(data)
    previous = manager.leave(connection_id)
    if previous is None:
        return
    payload = {"userId": previous.user_id, "chatRoomId": previous.room_id}
    await manager.broadcast(previous.room_id, "user_left", payload)
    await manager.send(connection_id, "left_chat_room", payload)


EVENT_HANDLERS = {
    "join_chat_room": on_join,
    "send_message": on_send,
    "mark_message_read": on_mark_read,
    "leave_chat_room": on_leave,
}


async def handle_frame(manager: ConnectionManager, db: Session, connection_id: str, raw: str) -> None:
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        await _error(manager, connection_id, "Frames must be JSON objects", "INVALID_FRAME")
        return
    if not isinstance(frame, dict):
        await _error(manager, connection_id, "Frames must be JSON objects", "INVALID_FRAME")
        return
    handler = EVENT_HANDLERS.get(frame.get("event"))
    if handler is None:
        await _error(manager, connection_id, f"Unknown event: {frame.get('event')}", "UNKNOWN_EVENT")
        return
    data = frame.get("data") or {}
    try:
        await handler(manager, db, connection_id, data)
    except ValidationError as exc:
        await _error(manager, connection_id, "Missing or invalid fields", "VALIDATION_ERROR")
        logger.info("socket_frame_invalid", extra={"connection_id": connection_id, "errors": exc.error_count()})
    except DomainError as exc:
        await _error(manager, connection_id, exc.message, exc.code)
    except Exception:  # noqa: BLE001
        db.rollback()
        logger.exception("socket_event_failed", extra={"connection_id": connection_id, "event": frame.get("event")})
        await _error(manager, connection_id, "Event failed", "INTERNAL_ERROR")


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, db: Session = Depends(get_db)) -> None:
    manager: ConnectionManager = websocket.app.state.connections
    connection_id = await manager.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            await handle_frame(manager, db, connection_id, raw)
    except WebSocketDisconnect:
        pass
    finally:
        previous = manager.disconnect(connection_id)
        if previous is not None:
            await manager.broadcast(previous.room_id, "user_left", {"userId": previous.user_id, "chatRoomId": previous.room_id})
