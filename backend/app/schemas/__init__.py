from app.schemas.user import UserCreate, UserResponse, UserLogin, Token, ProfileResponse
from app.schemas.accommodation import (
    AccommodationResponse, AssignHotelRequest, RespondRequest, CheckOutRequest,
    BulkStayResponse, QrVerifyRequest, QrVerifyResponse,
)
from app.schemas.team import TeamRequestCreate, TeamRequestResponse, TeamApprovalResponse
from app.schemas.hotel import (
    ClusterCreate, ClusterResponse, HotelCreate, HotelResponse,
    RoomCategoryCreate, RoomCategoryUpdate, RoomCategoryResponse,
)
from app.schemas.dashboard import DashboardSummary, IncompleteTeam

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token", "ProfileResponse",
    "AccommodationResponse", "AssignHotelRequest", "RespondRequest", "CheckOutRequest",
    "BulkStayResponse", "QrVerifyRequest", "QrVerifyResponse",
    "TeamRequestCreate", "TeamRequestResponse", "TeamApprovalResponse",
    "ClusterCreate", "ClusterResponse", "HotelCreate", "HotelResponse",
    "RoomCategoryCreate", "RoomCategoryUpdate", "RoomCategoryResponse",
    "DashboardSummary", "IncompleteTeam",
]
