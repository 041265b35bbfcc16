from datetime import datetime

from app.schemas.common import CamelModel
from app.schemas.listing import ListingRead


class FavoriteRead(CamelModel):
    id: str
    user_id: str
    listing_id: str
    created_at: datetime


class FavoriteWithListing(FavoriteRead):
    listing: ListingRead


class FavoriteListResponse(CamelModel):
    favorites: list[FavoriteWithListing]
    total: int


class FavoriteStatus(CamelModel):
    is_favorite: bool
    favorite_count: int
