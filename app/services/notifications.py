import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.notification import NOTIFICATION_TYPES, Notification

logger = logging.getLogger(__name__)

TEMPLATES = {
    "new_participant": ("New participant", "Someone joined {title}."),
    "participant_cancel": ("Participant left", "A participant left {title}."),
    "deadline_soon": ("Deadline approaching", "{title} closes soon."),
    "post_completed": ("Group buy completed", "The group buy {title} has been completed."),
    "post_cancelled": ("Group buy cancelled", "The group buy {title} has been cancelled."),
    "favorite_deadline": ("Favorite closing soon", "{title} from your favorites closes soon."),
    "favorite_completed": ("Favorite completed", "{title} from your favorites has been completed."),
}


def render(notification_type: str, listing_title: str) -> tuple[str, str]:
    title, body = TEMPLATES[notification_type]
    return title, body.format(title=listing_title)


def create_notification(
    db: Session,
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    post_id: str | None = None,
) -> Notification:
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {notification_type}")
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        post_id=post_id,
        is_read=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(
        "notification_created",
        extra={"notification_id": notification.id, "user_id": user_id, "type": notification_type, "post_id": post_id},
    )
    return notification


def notify(db: Session, user_id: str, notification_type: str, listing_id: str, listing_title: str) -> Notification:
    title, message = render(notification_type, listing_title)
    return create_notification(db, user_id, notification_type, title, message, post_id=listing_id)


def list_notifications(
    db: Session,
    user_id: str,
    limit: int = 20,
    offset: int = 0,
    unread_only: bool = False,
) -> dict:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    rows = db.scalars(query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)).all()
    total = db.scalar(select(func.count(Notification.id)).where(Notification.user_id == user_id)) or 0
    return {"notifications": list(rows), "unread_count": unread_count(db, user_id), "total": int(total)}


def _get_owned(db: Session, notification_id: str, user_id: str) -> Notification:
    # Someone else's notification looks exactly like a missing one.
    notification = db.scalar(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    if not notification:
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")
    return notification


def mark_read(db: Session, notification_id: str, user_id: str) -> Notification:
    notification = _get_owned(db, notification_id, user_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True),
        execution_options={"synchronize_session": False},
    )
    db.commit()
    return result.rowcount or 0


def unread_count(db: Session, user_id: str) -> int:
    count = db.scalar(
        select(func.count(Notification.id)).where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return int(count or 0)


def delete_notification(db: Session, notification_id: str, user_id: str) -> None:
    result = db.execute(
        delete(Notification).where(Notification.id == notification_id, Notification.user_id == user_id),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")
    db.commit()


def has_notification(db: Session, user_id: str, notification_type: str, listing_id: str) -> bool:
    found = db.scalar(
        select(Notification.id).where(
            Notification.user_id == user_id,
            Notification.type == notification_type,
            Notification.post_id == listing_id,
        )
    )
    return found is not None
