# app/db/models/user.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.core.timeutils import utcnow
from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="customer", server_default="customer")

    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    description = Column(String, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # services offered, if this user is a provider
    services = relationship("Service", back_populates="provider", lazy="selectin")
    bookings = relationship("Booking", back_populates="user")
    reviews = relationship("Review", back_populates="user")
