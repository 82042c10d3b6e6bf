# app/db/models/booking.py
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from app.core.timeutils import utcnow
from app.db.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED_BY_USER = "CANCELLED_BY_USER"
    CANCELLED_BY_PROVIDER = "CANCELLED_BY_PROVIDER"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


CANCELLED_STATUSES = (BookingStatus.CANCELLED_BY_USER, BookingStatus.CANCELLED_BY_PROVIDER)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_datetime < end_datetime", name="ck_bookings_range"),
        CheckConstraint("total_price > 0", name="ck_bookings_total_price_positive"),
        Index("ix_bookings_service_range", "service_id", "start_datetime", "end_datetime"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)

    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)

    # computed at creation, never recalculated
    total_price = Column(Numeric(12, 2), nullable=False)
    guest_count = Column(Integer, nullable=True)
    special_requests = Column(String, nullable=True)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    cancellation_reason = Column(String, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # relationships
    user = relationship("User", back_populates="bookings")
    service = relationship("Service", back_populates="bookings")
    payment = relationship("Payment", back_populates="booking", uselist=False, cascade="all, delete-orphan")
    review = relationship("Review", back_populates="booking", uselist=False, cascade="all, delete-orphan")
