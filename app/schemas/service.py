# app/schemas/service.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.db.models.service import PricingUnit, ServiceType
from app.schemas.category import CategoryMiniResponse
from app.schemas.location import LocationMiniResponse
from app.schemas.user import UserMiniResponse


# Shared fields
class ServiceBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: ServiceType = ServiceType.OTHER
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    pricing_unit: PricingUnit = PricingUnit.FIXED_PRICE
    capacity: Optional[int] = Field(default=None, gt=0)
    address: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    amenities: List[str] = []
    policies: List[str] = []
    images: List[str] = []
    thumbnail_url: Optional[str] = None


# Provider creates service
class ServiceCreate(ServiceBase):
    category_id: int
    location_id: int


# Provider updates service
class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: Optional[ServiceType] = None
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    pricing_unit: Optional[PricingUnit] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    amenities: Optional[List[str]] = None
    policies: Optional[List[str]] = None
    images: Optional[List[str]] = None
    thumbnail_url: Optional[str] = None
    category_id: Optional[int] = None
    location_id: Optional[int] = None


class ServiceMiniResponse(BaseModel):
    id: int
    title: str
    pricing_unit: PricingUnit

    class Config:
        from_attributes = True


# What list endpoints return
class ServiceResponse(BaseModel):
    id: int
    title: str
    type: ServiceType
    price: Decimal
    pricing_unit: PricingUnit
    capacity: Optional[int]
    thumbnail_url: Optional[str]
    is_active: bool
    is_verified: bool
    avg_rating: float
    review_count: int

    category: CategoryMiniResponse
    location: LocationMiniResponse
    provider: UserMiniResponse

    class Config:
        from_attributes = True


class ServiceDetailResponse(ServiceResponse):
    description: Optional[str]
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    amenities: List[str]
    policies: List[str]
    images: List[str]

    created_at: datetime
    updated_at: Optional[datetime] = None
