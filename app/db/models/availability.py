# app/db/models/availability.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.core.timeutils import utcnow
from app.db.base import Base


class Availability(Base):
    """
    A window of time during which a service is open (is_available=True)
    or blocked (is_available=False).
    Windows of one service may overlap each other.
    """
    __tablename__ = "availabilities"
    __table_args__ = (
        CheckConstraint("start_datetime < end_datetime", name="ck_availabilities_range"),
        Index("ix_availabilities_service_range", "service_id", "start_datetime", "end_datetime"),
    )

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    service = relationship("Service", back_populates="availabilities")
