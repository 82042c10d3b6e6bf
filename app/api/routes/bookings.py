from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.permissions import Principal
from app.core.security import get_current_principal
from app.db.base import get_db
from app.db.models.booking import BookingStatus
from app.schemas.booking import BookingCreate, BookingDetailResponse, BookingResponse
from app.services import bookings as booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


# Current user's bookings

@router.get("", response_model=list[BookingResponse])
def my_bookings(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.list_user_bookings(db, principal, page=page, per_page=per_page)


@router.get("/status/{booking_status}", response_model=list[BookingResponse])
def my_bookings_by_status(
    booking_status: BookingStatus,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.list_user_bookings(db, principal, booking_status, page, per_page)


# Bookings of the provider's services

@router.get("/provider", response_model=list[BookingResponse])
def provider_bookings(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.list_provider_bookings(db, principal, page=page, per_page=per_page)


@router.get("/provider/status/{booking_status}", response_model=list[BookingResponse])
def provider_bookings_by_status(
    booking_status: BookingStatus,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.list_provider_bookings(db, principal, booking_status, page, per_page)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.get_booking(db, principal, booking_id)


# Create booking

@router.post("", response_model=BookingDetailResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.create_booking(db, principal, booking)


# Confirm / cancel / complete / no-show

@router.patch("/{booking_id}/status", response_model=BookingDetailResponse)
def update_booking_status(
    booking_id: int,
    status: str = Query(..., description="CONFIRMED, CANCELLED_BY_USER, CANCELLED_BY_PROVIDER, COMPLETED or NO_SHOW"),
    cancellation_reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_service.update_booking_status(db, principal, booking_id, status, cancellation_reason)
