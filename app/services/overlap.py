# app/services/overlap.py
"""
Conflict checks run before a booking is inserted.

A request is bookable when at least one open availability window touches the
range and no live (non-cancelled) booking of the same service overlaps it.
Both use the same inclusive interval test, so touching endpoints conflict.
Callers are expected to hold a lock on the service row while checking and
inserting, see app.services.bookings.create_booking.
"""
import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from app.core.exceptions import BookingRejected
from app.db.models.availability import Availability
from app.db.models.booking import CANCELLED_STATUSES, Booking
from app.services.availability import list_available_in_range

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Service is not available for the requested dates"
ALREADY_BOOKED = "Service is already booked for the requested dates"


def find_available_windows(db: Session, service_id: int, start: datetime, end: datetime) -> List[Availability]:
    return list_available_in_range(db, service_id, start, end)


def find_conflicting_bookings(
    db: Session,
    service_id: int,
    start: datetime,
    end: datetime,
) -> List[Booking]:
    return db.query(Booking).filter(
        Booking.service_id == service_id,
        Booking.status.notin_(CANCELLED_STATUSES),
        Booking.start_datetime <= end,
        Booking.end_datetime >= start,
    ).all()


def ensure_bookable(db: Session, service_id: int, start: datetime, end: datetime) -> None:
    if not find_available_windows(db, service_id, start, end):
        logger.warning("Booking rejected for service %s: no open window for %s - %s", service_id, start, end)
        raise BookingRejected(NOT_AVAILABLE)

    conflicts = find_conflicting_bookings(db, service_id, start, end)
    if conflicts:
        logger.warning(
            "Booking rejected for service %s: overlaps booking(s) %s",
            service_id,
            [b.id for b in conflicts],
        )
        raise BookingRejected(ALREADY_BOOKED)
