"""
Pydantic schemas for the accommodation workflow.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator


class AccommodationResponse(BaseModel):
    id: int
    team_request_id: int
    team_member_id: int
    cluster_id: Optional[int]
    hotel_id: Optional[int]
    room_category_id: Optional[int]
    check_in_date: Optional[datetime]
    check_out_date: Optional[datetime]
    accommodation_preferences: Optional[str]
    status: str
    assigned_by: Optional[int]
    assigned_at: Optional[datetime]
    hotel_response_reason: Optional[str]
    hotel_responded_by: Optional[int]
    hotel_responded_at: Optional[datetime]
    confirmation_code: Optional[str]
    qr_code: Optional[str]
    check_in_status: str
    check_out_status: str
    actual_check_in_time: Optional[datetime]
    actual_check_out_time: Optional[datetime]
    is_early_checkout: bool
    version: int

    model_config = {"from_attributes": True}


class AssignHotelRequest(BaseModel):
    """
    Either a manual target (hotel_id + room_category_id) or an automatic
    pick from a cluster (cluster_id + automatic=true).
    """

    hotel_id: Optional[int] = None
    room_category_id: Optional[int] = None
    cluster_id: Optional[int] = None
    automatic: bool = False
    check_in_date: Optional[datetime] = None
    check_out_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_target(self):
        if self.automatic:
            if self.cluster_id is None:
                raise ValueError("automatic assignment requires cluster_id")
            if self.hotel_id is not None or self.room_category_id is not None:
                raise ValueError("automatic assignment picks the hotel itself")
        elif self.hotel_id is None or self.room_category_id is None:
            raise ValueError("manual assignment requires hotel_id and room_category_id")
        if self.check_in_date and self.check_out_date and self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class RespondRequest(BaseModel):
    approve: bool
    reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_reason(self):
        if not self.approve and not (self.reason and self.reason.strip()):
            raise ValueError("a reason is required when rejecting")
        return self


class CheckOutRequest(BaseModel):
    is_early_checkout: bool = False


class BulkStayItem(BaseModel):
    accommodation_id: int
    team_member_id: int
    outcome: Literal["ok", "skipped", "error"]
    detail: Optional[str] = None


class BulkStayResponse(BaseModel):
    message: str
    succeeded: int
    results: list[BulkStayItem]


class QrVerifyRequest(BaseModel):
    qr_code: str = Field(..., min_length=1, max_length=64)


class QrVerifyResponse(BaseModel):
    valid: bool
    accommodation_id: int
    hotel_id: Optional[int]
    confirmation_code: Optional[str]
    check_in_status: str
