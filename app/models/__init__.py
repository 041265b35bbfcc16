from app.models.chat_room import ChatRoom
from app.models.favorite import Favorite
from app.models.listing import Listing, ListingImage
from app.models.message import Message
from app.models.notification import Notification
from app.models.participant import Participant
from app.models.user import User

__all__ = ["User", "Listing", "ListingImage", "Participant", "Favorite", "Notification", "ChatRoom", "Message"]
