import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.errors import UserIdRequiredError
from app.db.session import get_db
from app.models.listing import Listing
from app.routers.deps import get_current_user_id, get_optional_user_id
from app.schemas.favorite import FavoriteStatus
from app.schemas.listing import (
    JoinResponse,
    LeaveResponse,
    ListingCategory,
    ListingCreate,
    ListingDetail,
    ListingRead,
    ListingStatusUpdate,
    ListingUpdate,
    ParticipantRead,
    ParticipatedListing,
    ParticipateRequest,
    ParticipationCheck,
)
from app.services import favorites, lifecycle, listings

router = APIRouter(prefix="/listings", tags=["listings"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ListingRead, status_code=status.HTTP_201_CREATED)
def create_listing(payload: ListingCreate, db: Session = Depends(get_db)) -> Listing:
    return listings.create_listing(db, payload)


@router.get("", response_model=list[ListingRead])
def list_listings(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    category: ListingCategory | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Listing]:
    return listings.list_listings(db, limit=limit, offset=offset, category=category)


@router.get("/author/{author_id}", response_model=list[ListingRead])
def list_by_author(
    author_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[Listing]:
    return listings.list_by_author(db, author_id, limit=limit, offset=offset)


@router.get("/user/{user_id}/participated", response_model=list[ParticipatedListing])
def list_participated(user_id: str, db: Session = Depends(get_db)) -> list:
    return lifecycle.list_participated(db, user_id)


@router.get("/{listing_id}", response_model=ListingDetail)
def get_listing(
    listing_id: str,
    db: Session = Depends(get_db),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> ListingDetail:
    detail = listings.get_listing_detail(db, listing_id, viewer_id)
    base = ListingRead.model_validate(detail["listing"]).model_dump()
    return ListingDetail(**base, favorite_count=detail["favorite_count"], is_favorite=detail["is_favorite"])


@router.patch("/{listing_id}", response_model=ListingRead)
def update_listing(
    listing_id: str,
    payload: ListingUpdate,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_optional_user_id),
) -> Listing:
    return listings.update_listing(db, listing_id, payload, requesting_user_id=user_id)


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_listing(
    listing_id: str,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_optional_user_id),
) -> None:
    lifecycle.delete_listing(db, listing_id, requesting_user_id=user_id)
    return None


@router.patch("/{listing_id}/status", response_model=ListingRead)
def change_status(
    listing_id: str,
    payload: ListingStatusUpdate,
    db: Session = Depends(get_db),
    header_user_id: str | None = Depends(get_optional_user_id),
) -> Listing:
    author_id = payload.author_id or header_user_id
    if not author_id:
        raise UserIdRequiredError("authorId is required", code="AUTHOR_ID_REQUIRED")
    return lifecycle.change_status(db, listing_id, payload.status, author_id)


@router.post("/{listing_id}/participate", response_model=JoinResponse, status_code=status.HTTP_201_CREATED)
def join_listing(listing_id: str, payload: ParticipateRequest, db: Session = Depends(get_db)) -> JoinResponse:
    participant, listing = lifecycle.join_listing(db, listing_id, payload.user_id)
    return JoinResponse(
        participant=ParticipantRead.model_validate(participant),
        post=ListingRead.model_validate(listing),
    )


@router.delete("/{listing_id}/participate/{user_id}", response_model=LeaveResponse)
def leave_listing(listing_id: str, user_id: str, db: Session = Depends(get_db)) -> LeaveResponse:
    listing = lifecycle.leave_listing(db, listing_id, user_id)
    return LeaveResponse(post=ListingRead.model_validate(listing))


@router.get("/{listing_id}/participate/{user_id}", response_model=ParticipationCheck)
def check_participation(listing_id: str, user_id: str, db: Session = Depends(get_db)) -> ParticipationCheck:
    return ParticipationCheck(is_participant=lifecycle.is_participant(db, listing_id, user_id))


@router.get("/{listing_id}/participants", response_model=list[ParticipantRead])
def list_participants(listing_id: str, db: Session = Depends(get_db)) -> list:
    return lifecycle.list_participants(db, listing_id)


@router.post("/{listing_id}/favorite", response_model=FavoriteStatus, status_code=status.HTTP_201_CREATED)
def add_favorite(
    listing_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> FavoriteStatus:
    favorites.add_favorite(db, listing_id, user_id)
    return FavoriteStatus(is_favorite=True, favorite_count=favorites.count_for_listing(db, listing_id))


@router.delete("/{listing_id}/favorite", response_model=FavoriteStatus)
def remove_favorite(
    listing_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> FavoriteStatus:
    favorites.remove_favorite(db, listing_id, user_id)
    return FavoriteStatus(is_favorite=False, favorite_count=favorites.count_for_listing(db, listing_id))
