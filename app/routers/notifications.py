from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.notification import Notification
from app.routers.deps import get_current_user_id
from app.schemas.common import UnreadCountResponse
from app.schemas.notification import MarkAllReadResponse, NotificationListResponse, NotificationRead
from app.services import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> dict:
    return notifications.list_notifications(db, user_id, limit=limit, offset=offset, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=notifications.unread_count(db, user_id))


@router.patch("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated_count=notifications.mark_all_read(db, user_id))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Notification:
    return notifications.mark_read(db, notification_id, user_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> None:
    notifications.delete_notification(db, notification_id, user_id)
    return None
