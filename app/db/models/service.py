# app/db/models/service.py
import enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship

from app.core.timeutils import utcnow
from app.db.base import Base


class PricingUnit(str, enum.Enum):
    PER_NIGHT = "PER_NIGHT"
    PER_DAY = "PER_DAY"
    PER_HOUR = "PER_HOUR"
    PER_PERSON = "PER_PERSON"
    FIXED_PRICE = "FIXED_PRICE"


class ServiceType(str, enum.Enum):
    ACCOMMODATION = "ACCOMMODATION"
    ACTIVITY = "ACTIVITY"
    TRANSPORTATION = "TRANSPORTATION"
    FOOD = "FOOD"
    OTHER = "OTHER"


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_services_price_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Foreign keys
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)

    # Basic details
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    type = Column(Enum(ServiceType), nullable=False, default=ServiceType.OTHER)

    # Pricing
    price = Column(Numeric(12, 2), nullable=False)
    pricing_unit = Column(Enum(PricingUnit), nullable=False, default=PricingUnit.FIXED_PRICE)
    capacity = Column(Integer, nullable=True)

    # Where
    address = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    amenities = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    policies = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    images = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    thumbnail_url = Column(String, nullable=True)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    # Denormalized from visible reviews, see app.services.reviews.recalculate_service_rating
    avg_rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    provider = relationship("User", back_populates="services")
    category = relationship("Category", back_populates="services")
    location = relationship("Location", back_populates="services")
    availabilities = relationship("Availability", back_populates="service", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="service", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="service", cascade="all, delete-orphan")
