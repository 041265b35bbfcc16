from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.user import UserSummary

ListingStatus = Literal["open", "closed", "in_progress", "completed", "cancelled"]
ListingCategory = Literal["food", "daily", "beauty", "electronics", "school", "freemarket"]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, str):
        return value.strip()
    return value


class ListingCreate(CamelModel):
    author_id: str
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    min_participants: int = Field(default=1, gt=0)
    deadline: datetime
    pickup_location: str | None = Field(default=None, max_length=200)
    images: list[str] = Field(default_factory=list)
    category: ListingCategory | None = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _blank_to_none(value)

    @field_validator("deadline")
    @classmethod
    def deadline_in_utc(cls, value):
        return _as_utc(value)


class ListingUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    min_participants: int | None = Field(default=None, gt=0)
    deadline: datetime | None = None
    pickup_location: str | None = Field(default=None, max_length=200)
    images: list[str] | None = None
    category: ListingCategory | None = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _blank_to_none(value)

    @field_validator("deadline")
    @classmethod
    def deadline_in_utc(cls, value):
        return _as_utc(value)


class ListingRead(CamelModel):
    id: str
    author_id: str
    title: str
    content: str
    price: Decimal
    min_participants: int
    current_quantity: int
    status: ListingStatus
    deadline: datetime
    category: ListingCategory | None
    pickup_location: str | None
    images: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("images", mode="before")
    @classmethod
    def _image_urls(cls, value):
        return [getattr(item, "image_url", item) for item in value or []]


class ListingDetail(ListingRead):
    favorite_count: int = 0
    is_favorite: bool = False


class ListingStatusUpdate(CamelModel):
    status: ListingStatus
    author_id: str | None = None


class ParticipateRequest(CamelModel):
    user_id: str = Field(min_length=1)


class ParticipantRead(CamelModel):
    id: str
    listing_id: str
    user_id: str
    created_at: datetime
    user: UserSummary | None = None


class ParticipatedListing(CamelModel):
    id: str
    listing_id: str
    created_at: datetime
    listing: ListingRead


class JoinResponse(CamelModel):
    participant: ParticipantRead
    post: ListingRead


class LeaveResponse(CamelModel):
    post: ListingRead


class ParticipationCheck(CamelModel):
    is_participant: bool
