from pydantic import Field

from app.schemas.chat import MessageType
from app.schemas.common import CamelModel


class JoinRoomFrame(CamelModel):
    chat_room_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class LeaveRoomFrame(CamelModel):
    chat_room_id: str | None = None
    user_id: str | None = None


class SendMessageFrame(CamelModel):
    chat_room_id: str = Field(min_length=1)
    sender_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    message_type: MessageType = "text"


class MarkReadFrame(CamelModel):
    message_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
