"""
Pydantic schemas for team requests and their members.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

from app.schemas.accommodation import AccommodationResponse


class TeamMemberCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    position: Optional[str] = Field(None, max_length=100)
    user_id: Optional[int] = None
    requires_accommodation: bool = False
    accommodation_preferences: Optional[str] = Field(None, max_length=2000)


class TeamRequestCreate(BaseModel):
    team_name: str = Field(..., min_length=1, max_length=255)
    sport: str = Field(..., min_length=1, max_length=100)
    tournament_id: Optional[int] = None
    check_in_date: Optional[datetime] = None
    check_out_date: Optional[datetime] = None
    members: list[TeamMemberCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_stay_dates(self):
        if self.check_in_date and self.check_out_date and self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class TeamRejection(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class MemberLink(BaseModel):
    """Player account to link to a roster entry; null unlinks it."""

    user_id: Optional[int]


class TeamMemberResponse(BaseModel):
    id: int
    team_request_id: int
    user_id: Optional[int]
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    position: Optional[str]
    requires_accommodation: bool
    accommodation_preferences: Optional[str]

    model_config = {"from_attributes": True}


class TeamRequestResponse(BaseModel):
    id: int
    team_name: str
    sport: str
    tournament_id: Optional[int]
    manager_id: int
    status: str
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    rejection_reason: Optional[str]
    check_in_date: Optional[datetime]
    check_out_date: Optional[datetime]
    members: list[TeamMemberResponse]
    created_at: datetime

    model_config = {"from_attributes": True}


class TeamApprovalResponse(BaseModel):
    team_request: TeamRequestResponse
    accommodation_requests: list[AccommodationResponse]
