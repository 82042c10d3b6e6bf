from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    # admins are created out of band
    role: Literal["customer", "provider"] = "customer"
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=6)
    phone: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    is_verified: bool

    class Config:
        from_attributes = True


class UserMiniResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
