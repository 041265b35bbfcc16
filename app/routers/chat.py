from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.chat_room import ChatRoom
from app.routers.deps import get_current_user_id
from app.schemas.chat import (
    ChatRoomCreate,
    ChatRoomListResponse,
    ChatRoomRead,
    MessageCreate,
    MessageRead,
    ReadAllResponse,
)
from app.schemas.common import UnreadCountResponse
from app.services import chat

router = APIRouter(prefix="/chat", tags=["chat"])


def persist_message(db: Session, room_id: str, sender_id: str, content: str, message_type: str) -> MessageRead:
    message = chat.send_message(db, room_id, sender_id, content, message_type)
    return MessageRead.model_validate(message)


@router.post("/rooms", response_model=ChatRoomRead, status_code=status.HTTP_201_CREATED)
def create_room(payload: ChatRoomCreate, db: Session = Depends(get_db)) -> ChatRoom:
    return chat.get_or_create_room(db, payload.post_id)


@router.get("/rooms", response_model=ChatRoomListResponse)
def list_my_rooms(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> dict:
    return chat.list_rooms_for_user(db, user_id, limit=limit, offset=offset)


@router.get("/rooms/post/{post_id}", response_model=ChatRoomRead)
def get_room_for_post(post_id: str, db: Session = Depends(get_db)) -> ChatRoom:
    return chat.get_or_create_room(db, post_id)


@router.get("/rooms/{room_id}", response_model=ChatRoomRead)
def get_room(room_id: str, db: Session = Depends(get_db)) -> ChatRoom:
    return chat.get_room(db, room_id)


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(room_id: str, db: Session = Depends(get_db)) -> None:
    chat.delete_room(db, room_id)
    return None


@router.get("/rooms/{room_id}/messages", response_model=list[MessageRead])
def list_messages(
    room_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list:
    return chat.list_messages(db, room_id, limit=limit, offset=offset)


@router.patch("/rooms/{room_id}/read-all", response_model=ReadAllResponse)
def mark_all_read(
    room_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> ReadAllResponse:
    updated = chat.mark_all_read(db, room_id, user_id)
    return ReadAllResponse(updated_count=updated, unread_count=chat.unread_count(db, room_id, user_id))


@router.get("/rooms/{room_id}/unread-count", response_model=UnreadCountResponse)
def unread_count(
    room_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> UnreadCountResponse:
    chat.get_room(db, room_id)
    return UnreadCountResponse(unread_count=chat.unread_count(db, room_id, user_id))


@router.post("/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def send_message(payload: MessageCreate, request: Request, db: Session = Depends(get_db)) -> MessageRead:
    message = await run_in_threadpool(
        persist_message, db, payload.chat_room_id, payload.sender_id, payload.content, payload.message_type
    )
    await request.app.state.connections.broadcast(
        message.chat_room_id, "receive_message", message.model_dump(mode="json", by_alias=True)
    )
    return message


@router.patch("/messages/{message_id}/read", response_model=MessageRead)
def mark_read(
    message_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> MessageRead:
    return MessageRead.model_validate(chat.mark_read(db, message_id, user_id))


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(message_id: str, db: Session = Depends(get_db)) -> None:
    chat.delete_message(db, message_id)
    return None
