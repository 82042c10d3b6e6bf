# app/api/routes/availability.py
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.permissions import Principal
from app.core.security import get_current_principal
from app.core.timeutils import to_naive_utc
from app.db.base import get_db
from app.schemas.availability import AvailabilityCreate, AvailabilityResponse, AvailabilityUpdate
from app.services import availability as availability_service

router = APIRouter(prefix="/availabilities", tags=["availability"])


@router.get("/service/{service_id}", response_model=List[AvailabilityResponse])
def list_service_availabilities(service_id: int, db: Session = Depends(get_db)):
    return availability_service.list_for_service(db, service_id)


@router.get("/service/{service_id}/dates", response_model=List[AvailabilityResponse])
def list_service_availabilities_between(
    service_id: int,
    start_date: datetime = Query(..., description="ISO datetime"),
    end_date: datetime = Query(..., description="ISO datetime"),
    db: Session = Depends(get_db),
):
    return availability_service.list_in_range(db, service_id, to_naive_utc(start_date), to_naive_utc(end_date))


@router.get("/service/{service_id}/available", response_model=List[AvailabilityResponse])
def list_open_windows(
    service_id: int,
    start_date: datetime = Query(..., description="ISO datetime"),
    end_date: datetime = Query(..., description="ISO datetime"),
    db: Session = Depends(get_db),
):
    return availability_service.list_available_in_range(
        db, service_id, to_naive_utc(start_date), to_naive_utc(end_date)
    )


# Service owner manages windows

@router.post("", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    payload: AvailabilityCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return availability_service.create_availability(db, principal, payload)


@router.post("/bulk", response_model=List[AvailabilityResponse], status_code=status.HTTP_201_CREATED)
def create_availabilities_bulk(
    payload: List[AvailabilityCreate],
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return availability_service.create_bulk(db, principal, payload)


@router.put("/{availability_id}", response_model=AvailabilityResponse)
def update_availability(
    availability_id: int,
    payload: AvailabilityUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return availability_service.update_availability(db, principal, availability_id, payload)


@router.delete("/{availability_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(
    availability_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    availability_service.delete_availability(db, principal, availability_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
