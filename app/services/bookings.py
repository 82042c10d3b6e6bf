# app/services/bookings.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions import PROVIDER_OR_ADMIN, VIEW_BOOKING, Principal, authorize
from app.core.timeutils import utcnow
from app.db.models.booking import Booking, BookingStatus
from app.db.models.service import Service
from app.schemas.booking import BookingCreate
from app.services.booking_state import apply_transition
from app.services.common import get_or_404, paginate
from app.services.overlap import ensure_bookable
from app.services.pricing import compute_price

logger = logging.getLogger(__name__)


def _lock_service(db: Session, service_id: int) -> Service:
    # Row lock held until commit; serialises check-then-insert per service.
    service = db.query(Service).filter(Service.id == service_id).with_for_update().first()
    if service is None:
        raise NotFoundError(f"Service not found with id: {service_id}")
    return service


def create_booking(
    db: Session, principal: Principal, payload: BookingCreate, now: Optional[datetime] = None
) -> Booking:
    now = now or utcnow()
    start, end = payload.start_datetime, payload.end_datetime

    service = _lock_service(db, payload.service_id)

    if not service.is_active:
        raise ValidationError("Service is not available for booking")

    if start < now:
        raise ValidationError("Booking start date cannot be in the past")

    if end <= start:
        raise ValidationError("Booking end date must be after start date")

    if payload.guest_count is not None:
        if payload.guest_count <= 0:
            raise ValidationError("Guest count must be positive")
        if service.capacity is not None and payload.guest_count > service.capacity:
            raise ValidationError(f"Guest count exceeds service capacity of {service.capacity}")

    ensure_bookable(db, service.id, start, end)

    total_price = compute_price(service.pricing_unit, service.price, start, end, payload.guest_count)

    booking = Booking(
        user_id=principal.id,
        service_id=service.id,
        start_datetime=start,
        end_datetime=end,
        total_price=total_price,
        guest_count=payload.guest_count,
        special_requests=payload.special_requests,
        status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)

    logger.info("Booking %s created for service %s, total %s", booking.id, service.id, total_price)
    return booking


def get_booking(db: Session, principal: Principal, booking_id: int) -> Booking:
    booking = get_or_404(db, Booking, booking_id, "Booking")
    authorize(VIEW_BOOKING, principal, booking)
    return booking


def list_user_bookings(
    db: Session,
    principal: Principal,
    status: Optional[BookingStatus] = None,
    page: int = 1,
    per_page: int = 10,
) -> List[Booking]:
    q = db.query(Booking).filter(Booking.user_id == principal.id)
    if status is not None:
        q = q.filter(Booking.status == status)
    return paginate(q.order_by(Booking.created_at.desc(), Booking.id.desc()), page, per_page)


def list_provider_bookings(
    db: Session,
    principal: Principal,
    status: Optional[BookingStatus] = None,
    page: int = 1,
    per_page: int = 10,
) -> List[Booking]:
    authorize(PROVIDER_OR_ADMIN, principal)

    q = (
        db.query(Booking)
        .join(Service, Booking.service_id == Service.id)
        .filter(Service.provider_id == principal.id)
    )
    if status is not None:
        q = q.filter(Booking.status == status)
    return paginate(q.order_by(Booking.created_at.desc(), Booking.id.desc()), page, per_page)


def update_booking_status(
    db: Session,
    principal: Principal,
    booking_id: int,
    status: str,
    cancellation_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()
    if booking is None:
        raise NotFoundError(f"Booking not found with id: {booking_id}")

    previous = booking.status
    apply_transition(booking, status, principal, cancellation_reason, now)

    db.commit()
    db.refresh(booking)

    logger.info(
        "Booking %s moved from %s to %s by user %s",
        booking.id,
        previous.value,
        booking.status.value,
        principal.id,
    )
    return booking
