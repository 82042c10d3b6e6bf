# app/schemas/location.py
from typing import Optional

from pydantic import BaseModel, Field


class LocationCreate(BaseModel):
    city: str = Field(..., min_length=1)
    region: Optional[str] = None
    country: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_popular: bool = False


class LocationUpdate(BaseModel):
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_popular: Optional[bool] = None
    is_active: Optional[bool] = None


class LocationMiniResponse(BaseModel):
    id: int
    city: str
    country: str

    class Config:
        from_attributes = True


class LocationResponse(LocationMiniResponse):
    region: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    description: Optional[str]
    image_url: Optional[str]
    is_popular: bool
    is_active: bool
