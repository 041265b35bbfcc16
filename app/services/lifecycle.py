"""Listing participation and status lifecycle.

Each operation commits its primary change (participant row, participant count,
status, delete) on its own and only then publishes a domain event. Trust score
and notification updates hang off those events and never fail the caller.
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    AlreadyParticipatedError,
    AuthorCannotJoinError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    PostNotOpenError,
)
from app.models.common import utcnow
from app.models.listing import Listing
from app.models.participant import Participant
from app.models.user import User
from app.services.events import EventBus, ListingDeleted, ListingStatusChanged, ParticipantJoined, ParticipantLeft
from app.services.handlers import default_event_bus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "open": frozenset({"closed", "cancelled"}),
    "closed": frozenset({"in_progress", "cancelled"}),
    "in_progress": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


def _get_listing(db: Session, listing_id: str) -> Listing:
    listing = db.get(Listing, listing_id)
    if not listing:
        raise NotFoundError("Listing not found", code="POST_NOT_FOUND")
    return listing


def count_participants(db: Session, listing_id: str) -> int:
    return int(db.scalar(select(func.count(Participant.id)).where(Participant.listing_id == listing_id)) or 0)


def participant_ids(db: Session, listing_id: str) -> list[str]:
    return list(
        db.scalars(
            select(Participant.user_id).where(Participant.listing_id == listing_id).order_by(Participant.created_at.asc())
        ).all()
    )


def join_listing(db: Session, listing_id: str, user_id: str, bus: EventBus | None = None) -> tuple[Participant, Listing]:
    listing = _get_listing(db, listing_id)
    if not db.get(User, user_id):
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    if listing.author_id == user_id:
        raise AuthorCannotJoinError()
    if listing.status != "open":
        raise PostNotOpenError()

    participant = Participant(listing_id=listing.id, user_id=user_id)
    db.add(participant)
    try:
        db.flush()
    except IntegrityError as exc:
        # The unique index on (listing_id, user_id) is the only duplicate guard.
        db.rollback()
        raise AlreadyParticipatedError() from exc
    listing.current_quantity = count_participants(db, listing.id)
    db.commit()
    logger.info(
        "participant_joined",
        extra={"listing_id": listing.id, "user_id": user_id, "current_quantity": listing.current_quantity},
    )

    (bus or default_event_bus()).publish(
        db, ParticipantJoined(listing_id=listing.id, user_id=user_id, author_id=listing.author_id)
    )
    db.refresh(participant)
    db.refresh(listing)
    return participant, listing


def leave_listing(db: Session, listing_id: str, user_id: str, bus: EventBus | None = None) -> Listing:
    participant = db.scalar(
        select(Participant).where(Participant.listing_id == listing_id, Participant.user_id == user_id)
    )
    if not participant:
        raise NotFoundError("Participant not found", code="PARTICIPANT_NOT_FOUND")
    listing = _get_listing(db, listing_id)

    db.delete(participant)
    db.flush()
    listing.current_quantity = count_participants(db, listing.id)
    db.commit()
    logger.info(
        "participant_left",
        extra={"listing_id": listing.id, "user_id": user_id, "current_quantity": listing.current_quantity},
    )

    (bus or default_event_bus()).publish(
        db, ParticipantLeft(listing_id=listing.id, user_id=user_id, author_id=listing.author_id)
    )
    db.refresh(listing)
    return listing


def change_status(
    db: Session,
    listing_id: str,
    new_status: str,
    requesting_user_id: str,
    bus: EventBus | None = None,
) -> Listing:
    listing = _get_listing(db, listing_id)
    if listing.author_id != requesting_user_id:
        raise ForbiddenError("Only the author may change the listing status")
    old_status = listing.status
    allowed = ALLOWED_TRANSITIONS.get(old_status, frozenset())
    if new_status not in allowed:
        raise InvalidTransitionError(old_status, new_status, allowed)

    # Conditional on the status we validated against, so two racing
    # transitions out of the same state cannot both apply their side effects.
    result = db.execute(
        update(Listing)
        .where(Listing.id == listing.id, Listing.status == old_status)
        .values(status=new_status, updated_at=utcnow()),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount == 0:
        db.rollback()
        current = db.scalar(select(Listing.status).where(Listing.id == listing_id))
        if current is None:
            raise NotFoundError("Listing not found", code="POST_NOT_FOUND")
        raise InvalidTransitionError(current, new_status, ALLOWED_TRANSITIONS.get(current, frozenset()))
    db.commit()
    logger.info(
        "listing_status_changed",
        extra={"listing_id": listing.id, "old_status": old_status, "new_status": new_status},
    )

    event = ListingStatusChanged(
        listing_id=listing.id,
        author_id=listing.author_id,
        old_status=old_status,
        new_status=new_status,
        participant_ids=tuple(participant_ids(db, listing.id)),
    )
    (bus or default_event_bus()).publish(db, event)
    db.refresh(listing)
    return listing


def delete_listing(
    db: Session,
    listing_id: str,
    requesting_user_id: str | None = None,
    bus: EventBus | None = None,
) -> None:
    listing = _get_listing(db, listing_id)
    if requesting_user_id and listing.author_id != requesting_user_id:
        raise ForbiddenError("Only the author may delete the listing")
    event = ListingDeleted(listing_id=listing.id, author_id=listing.author_id, title=listing.title)

    db.delete(listing)
    db.commit()
    logger.info("listing_deleted", extra={"listing_id": event.listing_id, "author_id": event.author_id})

    # The delete is already committed; a failed penalty is only logged.
    (bus or default_event_bus()).publish(db, event)


def is_participant(db: Session, listing_id: str, user_id: str) -> bool:
    found = db.scalar(select(Participant.id).where(Participant.listing_id == listing_id, Participant.user_id == user_id))
    return found is not None


def list_participants(db: Session, listing_id: str) -> list[Participant]:
    _get_listing(db, listing_id)
    return list(
        db.scalars(
            select(Participant).where(Participant.listing_id == listing_id).order_by(Participant.created_at.asc())
        ).all()
    )


def list_participated(db: Session, user_id: str) -> list[Participant]:
    return list(
        db.scalars(select(Participant).where(Participant.user_id == user_id).order_by(Participant.created_at.desc())).all()
    )
