from app.models.user import User
from app.models.team import TeamRequest, TeamMember
from app.models.hotel import HotelCluster, Hotel, RoomCategory
from app.models.accommodation import AccommodationRequest

__all__ = [
    "User",
    "TeamRequest", "TeamMember",
    "HotelCluster", "Hotel", "RoomCategory",
    "AccommodationRequest",
]
