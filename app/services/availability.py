# app/services/availability.py
"""Availability store: open and blocked time windows per service."""
import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.permissions import MANAGE_AVAILABILITY, Principal, authorize
from app.db.models.availability import Availability
from app.db.models.service import Service
from app.schemas.availability import AvailabilityCreate, AvailabilityUpdate
from app.services.common import get_or_404

logger = logging.getLogger(__name__)


def _validate_window(start: datetime, end: datetime) -> None:
    if start >= end:
        raise ValidationError("Start date must be before end date")


def _validate_query_range(start: datetime, end: datetime) -> None:
    if start > end:
        raise ValidationError("Start date must be before end date")


def list_for_service(db: Session, service_id: int) -> List[Availability]:
    return db.query(Availability).filter(Availability.service_id == service_id).all()


def _in_range_query(db: Session, service_id: int, start: datetime, end: datetime):
    return db.query(Availability).filter(
        Availability.service_id == service_id,
        Availability.start_datetime <= end,
        Availability.end_datetime >= start,
    )


def list_in_range(db: Session, service_id: int, start: datetime, end: datetime) -> List[Availability]:
    _validate_query_range(start, end)
    return _in_range_query(db, service_id, start, end).all()


def list_available_in_range(db: Session, service_id: int, start: datetime, end: datetime) -> List[Availability]:
    _validate_query_range(start, end)
    return (
        _in_range_query(db, service_id, start, end)
        .filter(Availability.is_available.is_(True))
        .all()
    )


def create_availability(db: Session, principal: Principal, payload: AvailabilityCreate) -> Availability:
    service = get_or_404(db, Service, payload.service_id, "Service")
    authorize(MANAGE_AVAILABILITY, principal, service)
    _validate_window(payload.start_datetime, payload.end_datetime)

    availability = Availability(
        service_id=service.id,
        start_datetime=payload.start_datetime,
        end_datetime=payload.end_datetime,
        is_available=payload.is_available,
        notes=payload.notes,
    )
    db.add(availability)
    db.commit()
    db.refresh(availability)

    logger.info("Availability %s created for service %s", availability.id, service.id)
    return availability


def create_bulk(db: Session, principal: Principal, payloads: List[AvailabilityCreate]) -> List[Availability]:
    """Create several windows for one service; nothing is written unless every entry is valid."""
    if not payloads:
        raise ValidationError("At least one availability request is required")

    service_id = payloads[0].service_id
    if any(p.service_id != service_id for p in payloads):
        raise ValidationError("All availability requests must be for the same service")

    service = get_or_404(db, Service, service_id, "Service")
    authorize(MANAGE_AVAILABILITY, principal, service)

    for p in payloads:
        _validate_window(p.start_datetime, p.end_datetime)

    windows = [
        Availability(
            service_id=service.id,
            start_datetime=p.start_datetime,
            end_datetime=p.end_datetime,
            is_available=p.is_available,
            notes=p.notes,
        )
        for p in payloads
    ]
    db.add_all(windows)
    db.commit()
    for w in windows:
        db.refresh(w)

    logger.info("%d availabilities created for service %s", len(windows), service.id)
    return windows


def update_availability(
    db: Session, principal: Principal, availability_id: int, payload: AvailabilityUpdate
) -> Availability:
    availability = get_or_404(db, Availability, availability_id, "Availability")
    authorize(MANAGE_AVAILABILITY, principal, availability.service)

    changes = payload.model_dump(exclude_unset=True)
    # explicit nulls leave the field unchanged as well
    changes = {field: value for field, value in changes.items() if value is not None}

    start = changes.get("start_datetime", availability.start_datetime)
    end = changes.get("end_datetime", availability.end_datetime)
    _validate_window(start, end)

    for field, value in changes.items():
        setattr(availability, field, value)

    db.commit()
    db.refresh(availability)
    return availability


def delete_availability(db: Session, principal: Principal, availability_id: int) -> None:
    availability = get_or_404(db, Availability, availability_id, "Availability")
    authorize(MANAGE_AVAILABILITY, principal, availability.service)

    db.delete(availability)
    db.commit()
    logger.info("Availability %s deleted", availability_id)
