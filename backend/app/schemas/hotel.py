"""
Pydantic schemas for clusters, hotels and room categories.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator


class ContactInfo(BaseModel):
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)


class ClusterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    max_radius: Optional[Decimal] = Field(None, gt=0, le=1000)


class ClusterResponse(BaseModel):
    id: int
    name: str
    city: Optional[str]
    description: Optional[str]
    max_radius: Optional[Decimal]
    created_by: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class HotelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    proximity_to_venue: Optional[str] = Field(None, max_length=255)
    cluster_id: Optional[int] = None
    auto_approve_bookings: bool = False
    contact_info: Optional[ContactInfo] = None


class HotelRejection(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class HotelClusterAssign(BaseModel):
    cluster_id: Optional[int] = None


class HotelResponse(BaseModel):
    id: int
    name: str
    address: Optional[str]
    proximity_to_venue: Optional[str]
    cluster_id: Optional[int]
    manager_id: int
    approved: str
    rejection_reason: Optional[str]
    auto_approve_bookings: bool
    contact_info: Optional[ContactInfo]
    created_at: datetime

    model_config = {"from_attributes": True}


class RoomCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price_per_night: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    total_rooms: int = Field(..., gt=0, le=10000)
    available_rooms: Optional[int] = Field(None, ge=0)
    max_occupancy: int = Field(default=2, gt=0, le=20)

    @model_validator(mode="after")
    def check_availability(self):
        if self.available_rooms is not None and self.available_rooms > self.total_rooms:
            raise ValueError("available_rooms cannot exceed total_rooms")
        return self


class RoomCategoryUpdate(BaseModel):
    """Partial edit. Availability is derived from the new total, never set directly."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price_per_night: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    total_rooms: Optional[int] = Field(None, gt=0, le=10000)
    max_occupancy: Optional[int] = Field(None, gt=0, le=20)


class RoomCategoryResponse(BaseModel):
    id: int
    hotel_id: int
    name: str
    price_per_night: Decimal
    total_rooms: int
    available_rooms: int
    max_occupancy: int

    model_config = {"from_attributes": True}
