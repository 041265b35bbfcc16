from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.user import UserSummary

MessageType = Literal["text", "image", "file"]


class ChatRoomCreate(CamelModel):
    post_id: str = Field(min_length=1)


class ChatRoomRead(CamelModel):
    id: str
    post_id: str
    created_at: datetime
    updated_at: datetime


class MessageCreate(CamelModel):
    chat_room_id: str = Field(min_length=1)
    sender_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    message_type: MessageType = "text"


class MessageRead(CamelModel):
    id: str
    chat_room_id: str
    sender_id: str
    content: str
    message_type: MessageType
    is_read: bool
    created_at: datetime
    sender: UserSummary | None = None


class RoomPost(CamelModel):
    id: str
    title: str
    author_id: str
    images: list[str] = Field(default_factory=list)


class RoomMember(CamelModel):
    user_id: str
    nickname: str
    avatar_url: str | None = None


class LastMessage(CamelModel):
    content: str
    sender_id: str
    created_at: datetime


class ChatRoomSummary(CamelModel):
    id: str
    post_id: str
    post: RoomPost
    participants: list[RoomMember]
    last_message: LastMessage | None
    unread_count: int
    created_at: datetime
    updated_at: datetime


class ChatRoomListResponse(CamelModel):
    chat_rooms: list[ChatRoomSummary]
    total: int
    limit: int
    offset: int


class ReadAllResponse(CamelModel):
    updated_count: int
    unread_count: int
