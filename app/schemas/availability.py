# app/schemas/availability.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.common import UtcDateTime


class AvailabilityCreate(BaseModel):
    service_id: int
    start_datetime: UtcDateTime
    end_datetime: UtcDateTime
    is_available: bool = True
    notes: Optional[str] = None


# absent field = unchanged
class AvailabilityUpdate(BaseModel):
    start_datetime: Optional[UtcDateTime] = None
    end_datetime: Optional[UtcDateTime] = None
    is_available: Optional[bool] = None
    notes: Optional[str] = None


class AvailabilityResponse(BaseModel):
    id: int
    service_id: int
    start_datetime: datetime
    end_datetime: datetime
    is_available: bool
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
