import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.user import User

logger = logging.getLogger(__name__)

CLOSE_AUTHOR_DELTA = 10
CLOSE_PARTICIPANT_DELTA = 5
CANCEL_AUTHOR_DELTA = -5
DELETE_AUTHOR_DELTA = -5
LEAVE_PARTICIPANT_DELTA = -3


def adjust_trust_score(db: Session, user_id: str, delta: int) -> None:
    # Applied as a single UPDATE so concurrent adjustments never lose a delta.
    result = db.execute(
        update(User).where(User.id == user_id).values(trust_score=User.trust_score + delta),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    db.commit()
    logger.info("trust_score_adjusted", extra={"user_id": user_id, "delta": delta})

