import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import ConflictError, NotFoundError
from app.core.security import hash_password
from app.models.user import User
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)


def register_user(db: Session, payload: UserCreate) -> User:
    user = User(
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        nickname=payload.nickname,
        student_id=payload.student_id,
        department=payload.department,
        avatar_url=payload.avatar_url,
        trust_score=get_settings().initial_trust_score,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email or student id already registered", code="USER_ALREADY_EXISTS") from exc
    db.refresh(user)
    logger.info("user_registered", extra={"user_id": user.id})
    return user


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    return user
