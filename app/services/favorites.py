import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AlreadyFavoritedError, NotFoundError
from app.models.favorite import Favorite
from app.models.listing import Listing
from app.models.user import User

logger = logging.getLogger(__name__)


def add_favorite(db: Session, listing_id: str, user_id: str) -> Favorite:
    if not db.get(Listing, listing_id):
        raise NotFoundError("Listing not found", code="POST_NOT_FOUND")
    if not db.get(User, user_id):
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    favorite = Favorite(listing_id=listing_id, user_id=user_id)
    db.add(favorite)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyFavoritedError() from exc
    db.refresh(favorite)
    return favorite


def remove_favorite(db: Session, listing_id: str, user_id: str) -> None:
    result = db.execute(
        delete(Favorite).where(Favorite.listing_id == listing_id, Favorite.user_id == user_id),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Favorite not found", code="FAVORITE_NOT_FOUND")
    db.commit()


def is_favorite(db: Session, listing_id: str, user_id: str | None) -> bool:
    if not user_id:
        return False
    found = db.scalar(select(Favorite.id).where(Favorite.listing_id == listing_id, Favorite.user_id == user_id))
    return found is not None


def count_for_listing(db: Session, listing_id: str) -> int:
    return int(db.scalar(select(func.count(Favorite.id)).where(Favorite.listing_id == listing_id)) or 0)


def list_for_user(db: Session, user_id: str, limit: int = 20, offset: int = 0) -> dict:
    rows = db.scalars(
        select(Favorite).where(Favorite.user_id == user_id).order_by(Favorite.created_at.desc()).limit(limit).offset(offset)
    ).all()
    total = db.scalar(select(func.count(Favorite.id)).where(Favorite.user_id == user_id)) or 0
    return {"favorites": list(rows), "total": int(total)}


def list_favorite_user_ids(db: Session, listing_id: str) -> list[str]:
    return list(db.scalars(select(Favorite.user_id).where(Favorite.listing_id == listing_id)).all())
