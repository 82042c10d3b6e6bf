# app/schemas/payment.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from app.db.models.payment import PaymentMethod, PaymentStatus


class PaymentResponse(BaseModel):
    id: int
    transaction_id: str
    amount: Decimal
    status: PaymentStatus
    method: PaymentMethod
    notes: Optional[str]
    paid_at: Optional[datetime]
    refunded_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
