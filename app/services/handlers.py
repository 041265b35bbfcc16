"""Secondary effects of the listing lifecycle: trust score deltas and notifications."""

import logging
from functools import lru_cache

from sqlalchemy.orm import Session

from app.models.listing import Listing
from app.services import favorites, notifications, trust
from app.services.events import (
    EventBus,
    ListingDeleted,
    ListingStatusChanged,
    ParticipantJoined,
    ParticipantLeft,
    run_isolated,
)

logger = logging.getLogger(__name__)


def _listing_title(db: Session, listing_id: str) -> str:
    listing = db.get(Listing, listing_id)
    return listing.title if listing else ""


def _notify_each(db: Session, user_ids, notification_type: str, listing_id: str, title: str) -> None:
    for user_id in user_ids:
        run_isolated(
            db,
            f"notify:{notification_type}:{user_id}",
            notifications.notify,
            db,
            user_id,
            notification_type,
            listing_id,
            title,
        )


def _unique(user_ids) -> list[str]:
    seen: dict[str, None] = {}
    for user_id in user_ids:
        seen.setdefault(user_id, None)
    return list(seen)


def notify_author_of_join(db: Session, event: ParticipantJoined) -> None:
    notifications.notify(db, event.author_id, "new_participant", event.listing_id, _listing_title(db, event.listing_id))


def penalize_leaver(db: Session, event: ParticipantLeft) -> None:
    trust.adjust_trust_score(db, event.user_id, trust.LEAVE_PARTICIPANT_DELTA)


def notify_author_of_leave(db: Session, event: ParticipantLeft) -> None:
    notifications.notify(db, event.author_id, "participant_cancel", event.listing_id, _listing_title(db, event.listing_id))


def _adjust_isolated(db: Session, label: str, user_id: str, delta: int) -> None:
    run_isolated(db, label, trust.adjust_trust_score, db, user_id, delta)


def apply_status_trust(db: Session, event: ListingStatusChanged) -> None:
    if event.new_status == "closed":
        _adjust_isolated(db, f"trust:close:author:{event.author_id}", event.author_id, trust.CLOSE_AUTHOR_DELTA)
        for user_id in event.participant_ids:
            _adjust_isolated(db, f"trust:close:{user_id}", user_id, trust.CLOSE_PARTICIPANT_DELTA)
    elif event.new_status == "cancelled":
        _adjust_isolated(db, f"trust:cancel:author:{event.author_id}", event.author_id, trust.CANCEL_AUTHOR_DELTA)


def _favorite_user_ids(db: Session, listing_id: str) -> list[str]:
    found: list[str] = []
    # A failed lookup only drops the watcher fan-out.
    run_isolated(db, "favorites:lookup", lambda: found.extend(favorites.list_favorite_user_ids(db, listing_id)))
    return found


def notify_status_change(db: Session, event: ListingStatusChanged) -> None:
    if event.new_status not in {"closed", "cancelled"}:
        return
    title = _listing_title(db, event.listing_id)
    if event.new_status == "closed":
        completed = _unique([event.author_id, *event.participant_ids])
        _notify_each(db, completed, "post_completed", event.listing_id, title)
        watchers = [user_id for user_id in _unique(_favorite_user_ids(db, event.listing_id)) if user_id not in set(completed)]
        _notify_each(db, watchers, "favorite_completed", event.listing_id, title)
    else:
        participants = _unique(event.participant_ids)
        _notify_each(db, participants, "post_cancelled", event.listing_id, title)
        watchers = [user_id for user_id in _unique(_favorite_user_ids(db, event.listing_id)) if user_id not in set(participants)]
        _notify_each(db, watchers, "post_cancelled", event.listing_id, title)


def penalize_deleted_listing_author(db: Session, event: ListingDeleted) -> None:
    trust.adjust_trust_score(db, event.author_id, trust.DELETE_AUTHOR_DELTA)


def build_event_bus() -> EventBus:
    bus = EventBus()
    bus.subscribe(ParticipantJoined, notify_author_of_join)
    bus.subscribe(ParticipantLeft, penalize_leaver)
    bus.subscribe(ParticipantLeft, notify_author_of_leave)
    bus.subscribe(ListingStatusChanged, apply_status_trust)
    bus.subscribe(ListingStatusChanged, notify_status_change)
    bus.subscribe(ListingDeleted, penalize_deleted_listing_author)
    return bus


@lru_cache(maxsize=1)
def default_event_bus() -> EventBus:
    return build_event_bus()
