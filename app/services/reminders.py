import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.listing import Listing
from app.services import favorites, notifications
from app.services.events import run_isolated
from app.services.lifecycle import participant_ids

logger = logging.getLogger(__name__)


def send_deadline_reminders(db: Session, now: datetime | None = None) -> int:
    """Warn everyone involved in an open listing whose deadline is close.

    Author and participants get ``deadline_soon``; users who only bookmarked the
    listing get ``favorite_deadline``. A user is reminded once per listing.
    """
    now = now or datetime.now(timezone.utc)
    horizon = now + timedelta(hours=get_settings().deadline_reminder_hours)
    due = db.scalars(
        select(Listing).where(Listing.status == "open", Listing.deadline > now, Listing.deadline <= horizon)
    ).all()

    sent = 0
    for listing in due:
        listing_id, title = listing.id, listing.title
        involved = [listing.author_id, *participant_ids(db, listing_id)]
        plan = [(user_id, "deadline_soon") for user_id in dict.fromkeys(involved)]
        plan += [
            (user_id, "favorite_deadline")
            for user_id in dict.fromkeys(favorites.list_favorite_user_ids(db, listing_id))
            if user_id not in involved
        ]
        for user_id, notification_type in plan:
            if notifications.has_notification(db, user_id, notification_type, listing_id):
                continue
            if run_isolated(
                db,
                f"reminder:{notification_type}:{user_id}",
                notifications.notify,
                db,
                user_id,
                notification_type,
                listing_id,
                title,
            ):
                sent += 1
    logger.info("deadline_reminders_sent", extra={"listings": len(due), "notifications": sent})
    return sent
