from app.schemas.chat import ChatRoomCreate, ChatRoomListResponse, ChatRoomRead, MessageCreate, MessageRead
from app.schemas.common import UnreadCountResponse
from app.schemas.favorite import FavoriteListResponse, FavoriteRead, FavoriteStatus
from app.schemas.listing import (
    JoinResponse,
    LeaveResponse,
    ListingCreate,
    ListingDetail,
    ListingRead,
    ListingStatusUpdate,
    ListingUpdate,
    ParticipantRead,
    ParticipateRequest,
)
from app.schemas.notification import MarkAllReadResponse, NotificationListResponse, NotificationRead
from app.schemas.user import UserCreate, UserRead, UserSummary

__all__ = [
    "UserCreate",
    "UserRead",
    "UserSummary",
    "ListingCreate",
    "ListingUpdate",
    "ListingRead",
    "ListingDetail",
    "ListingStatusUpdate",
    "ParticipateRequest",
    "ParticipantRead",
    "JoinResponse",
    "LeaveResponse",
    "NotificationRead",
    "NotificationListResponse",
    "MarkAllReadResponse",
    "UnreadCountResponse",
    "ChatRoomCreate",
    "ChatRoomRead",
    "ChatRoomListResponse",
    "MessageCreate",
    "MessageRead",
    "FavoriteRead",
    "FavoriteListResponse",
    "FavoriteStatus",
]
