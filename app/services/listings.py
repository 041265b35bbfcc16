import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.models.listing import Listing, ListingImage
from app.models.user import User
from app.schemas.listing import ListingCreate, ListingUpdate
from app.services import favorites

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"category", "pickup_location"}


def create_listing(db: Session, payload: ListingCreate) -> Listing:
    if not db.get(User, payload.author_id):
        raise NotFoundError("Author not found", code="AUTHOR_NOT_FOUND")
    listing = Listing(
        author_id=payload.author_id,
        title=payload.title,
        content=payload.content,
        price=payload.price,
        min_participants=payload.min_participants,
        deadline=payload.deadline,
        category=payload.category,
        pickup_location=payload.pickup_location,
        status="open",
        current_quantity=0,
    )
    listing.images = [ListingImage(image_url=url, sort_order=idx) for idx, url in enumerate(payload.images)]
    db.add(listing)
    db.commit()
    db.refresh(listing)
    logger.info("listing_created", extra={"listing_id": listing.id, "author_id": listing.author_id})
    return listing


def get_listing(db: Session, listing_id: str) -> Listing:
    listing = db.get(Listing, listing_id)
    if not listing:
        raise NotFoundError("Listing not found", code="POST_NOT_FOUND")
    return listing


def get_listing_detail(db: Session, listing_id: str, viewer_id: str | None = None) -> dict:
    listing = get_listing(db, listing_id)
    return {
        "listing": listing,
        "favorite_count": favorites.count_for_listing(db, listing_id),
        "is_favorite": favorites.is_favorite(db, listing_id, viewer_id),
    }


def list_listings(db: Session, limit: int = 20, offset: int = 0, category: str | None = None) -> list[Listing]:
    query = select(Listing)
    if category:
        query = query.where(Listing.category == category)
    return list(db.scalars(query.order_by(Listing.created_at.desc()).limit(limit).offset(offset)).all())


def list_by_author(db: Session, author_id: str, limit: int = 20, offset: int = 0) -> list[Listing]:
    return list(
        db.scalars(
            select(Listing)
            .where(Listing.author_id == author_id)
            .order_by(Listing.created_at.desc())
            .limit(limit)
            .offset(offset)
        ).all()
    )


def update_listing(db: Session, listing_id: str, patch: ListingUpdate, requesting_user_id: str | None = None) -> Listing:
    """Apply a partial edit. Status and participant count are not editable here."""
    listing = get_listing(db, listing_id)
    if requesting_user_id and requesting_user_id != listing.author_id:
        raise ForbiddenError()
    changes = patch.model_dump(exclude_unset=True)
    images = changes.pop("images", None)
    for key, value in changes.items():
        if value is None and key not in NULLABLE_FIELDS:
            continue
        setattr(listing, key, value)
    if images is not None:
        listing.images = [ListingImage(image_url=url, sort_order=idx) for idx, url in enumerate(images)]
    db.commit()
    db.refresh(listing)
    return listing
