from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.db.models.booking import BookingStatus
from app.schemas.common import UtcDateTime
from app.schemas.payment import PaymentResponse
from app.schemas.service import ServiceMiniResponse
from app.schemas.user import UserMiniResponse


# --- CREATE ---
class BookingCreate(BaseModel):
    service_id: int
    start_datetime: UtcDateTime
    end_datetime: UtcDateTime
    guest_count: Optional[int] = None
    special_requests: Optional[str] = Field(default=None, max_length=1000)


# --- RESPONSE ---
class BookingResponse(BaseModel):
    id: int
    user_id: int
    service_id: int
    start_datetime: datetime
    end_datetime: datetime
    total_price: Decimal
    guest_count: Optional[int]
    status: BookingStatus
    created_at: datetime

    class Config:
        from_attributes = True


class BookingDetailResponse(BookingResponse):
    special_requests: Optional[str]
    cancellation_reason: Optional[str]
    cancelled_at: Optional[datetime]
    updated_at: Optional[datetime]

    user: UserMiniResponse
    service: ServiceMiniResponse
    payment: Optional[PaymentResponse] = None
