# app/schemas/review.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, conint


class ReviewCreate(BaseModel):
    booking_id: int
    rating: conint(ge=1, le=5) = Field(..., description="Rating 1-5")
    comment: Optional[str] = Field(default=None, max_length=1000)
    images: List[str] = []


class ReviewUpdate(BaseModel):
    rating: Optional[conint(ge=1, le=5)] = None
    comment: Optional[str] = Field(default=None, max_length=1000)
    images: Optional[List[str]] = None


class ReviewResponse(BaseModel):
    id: int
    booking_id: int
    user_id: int
    service_id: int
    rating: int
    comment: Optional[str]
    images: List[str]
    is_visible: bool
    owner_reply: Optional[str]
    owner_replied_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
