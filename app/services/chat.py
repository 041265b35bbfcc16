import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.chat_room import ChatRoom
from app.models.common import utcnow
from app.models.listing import Listing
from app.models.message import MESSAGE_TYPES, Message
from app.models.participant import Participant
from app.models.user import User

logger = logging.getLogger(__name__)


def get_room(db: Session, room_id: str) -> ChatRoom:
    room = db.get(ChatRoom, room_id)
    if not room:
        raise NotFoundError("Chat room not found", code="CHAT_ROOM_NOT_FOUND")
    return room


def find_room_by_post(db: Session, post_id: str) -> ChatRoom | None:
    return db.scalar(select(ChatRoom).where(ChatRoom.post_id == post_id))


def get_or_create_room(db: Session, post_id: str) -> ChatRoom:
    room = find_room_by_post(db, post_id)
    if room:
        return room
    if not db.get(Listing, post_id):
        raise NotFoundError("Listing not found", code="POST_NOT_FOUND")
    room = ChatRoom(post_id=post_id)
    db.add(room)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race to another first caller; the unique index kept one row.
        db.rollback()
        existing = find_room_by_post(db, post_id)
        if existing is None:
            raise
        logger.info("chat_room_create_race", extra={"post_id": post_id, "chat_room_id": existing.id})
        return existing
    db.refresh(room)
    logger.info("chat_room_created", extra={"post_id": post_id, "chat_room_id": room.id})
    return room


def delete_room(db: Session, room_id: str) -> None:
    room = get_room(db, room_id)
    db.delete(room)
    db.commit()


def send_message(db: Session, room_id: str, sender_id: str, content: str, message_type: str = "text") -> Message:
    room = get_room(db, room_id)
    if not db.get(User, sender_id):
        raise NotFoundError("Sender not found", code="SENDER_NOT_FOUND")
    if message_type not in MESSAGE_TYPES:
        raise ValueError(f"Unknown message type: {message_type}")
    message = Message(chat_room_id=room.id, sender_id=sender_id, content=content, message_type=message_type, is_read=False)
    db.add(message)
    # Bump the room so room lists sort by latest activity.
    room.updated_at = utcnow()
    db.commit()
    db.refresh(message)
    logger.info(
        "chat_message_sent",
        extra={"chat_room_id": room.id, "message_id": message.id, "sender_id": sender_id, "content": content},
    )
    return message


def get_message(db: Session, message_id: str) -> Message:
    message = db.get(Message, message_id)
    if not message:
        raise NotFoundError("Message not found", code="MESSAGE_NOT_FOUND")
    return message


def list_messages(db: Session, room_id: str, limit: int = 50, offset: int = 0) -> list[Message]:
    get_room(db, room_id)
    return list(
        db.scalars(
            select(Message)
            .where(Message.chat_room_id == room_id)
            .order_by(Message.created_at.asc())
            .limit(limit)
            .offset(offset)
        ).all()
    )


def mark_read(db: Session, message_id: str, user_id: str) -> Message:
    message = get_message(db, message_id)
    if message.sender_id == user_id:
        return message
    if not message.is_read:
        message.is_read = True
        db.commit()
        db.refresh(message)
    return message


def mark_all_read(db: Session, room_id: str, user_id: str) -> int:
    get_room(db, room_id)
    result = db.execute(
        update(Message)
        .where(Message.chat_room_id == room_id, Message.sender_id != user_id, Message.is_read.is_(False))
        .values(is_read=True),
        execution_options={"synchronize_session": False},
    )
    db.commit()
    return result.rowcount or 0


def unread_count(db: Session, room_id: str, user_id: str) -> int:
    count = db.scalar(
        select(func.count(Message.id)).where(
            Message.chat_room_id == room_id,
            Message.sender_id != user_id,
            Message.is_read.is_(False),
        )
    )
    return int(count or 0)


def delete_message(db: Session, message_id: str) -> None:
    result = db.execute(delete(Message).where(Message.id == message_id), execution_options={"synchronize_session": False})
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Message not found", code="MESSAGE_NOT_FOUND")
    db.commit()


def _rooms_for_user_query(user_id: str):
    joined = select(Participant.listing_id).where(Participant.user_id == user_id)
    authored = select(Listing.id).where(Listing.author_id == user_id)
    return or_(ChatRoom.post_id.in_(joined), ChatRoom.post_id.in_(authored))


def list_rooms_for_user(db: Session, user_id: str, limit: int = 20, offset: int = 0) -> dict:
    """Rooms of every listing the user authored or joined, latest activity first."""
    if not db.get(User, user_id):
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    condition = _rooms_for_user_query(user_id)
    rooms = db.scalars(select(ChatRoom).where(condition).order_by(ChatRoom.updated_at.desc()).limit(limit).offset(offset)).all()
    total = db.scalar(select(func.count(ChatRoom.id)).where(condition)) or 0

    summaries = []
    for room in rooms:
        listing = room.listing
        members = []
        if listing.author:
            members.append({"user_id": listing.author.id, "nickname": listing.author.nickname, "avatar_url": listing.author.avatar_url})
        for participant in sorted(listing.participants, key=lambda p: p.created_at):
            members.append(
                {"user_id": participant.user.id, "nickname": participant.user.nickname, "avatar_url": participant.user.avatar_url}
            )
        last = db.scalar(
            select(Message).where(Message.chat_room_id == room.id).order_by(Message.created_at.desc()).limit(1)
        )
        summaries.append(
            {
                "id": room.id,
                "post_id": room.post_id,
                "post": {
                    "id": listing.id,
                    "title": listing.title,
                    "author_id": listing.author_id,
                    "images": [image.image_url for image in listing.images],
                },
                "participants": members,
                "last_message": (
                    {"content": last.content, "sender_id": last.sender_id, "created_at": last.created_at} if last else None
                ),
                "unread_count": unread_count(db, room.id, user_id),
                "created_at": room.created_at,
                "updated_at": room.updated_at,
            }
        )
    return {"chat_rooms": summaries, "total": int(total), "limit": limit, "offset": offset}
