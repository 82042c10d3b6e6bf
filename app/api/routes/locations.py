# app/api/routes/locations.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.core.permissions import Principal
from app.core.security import require_admin
from app.db.base import get_db
from app.db.models.location import Location
from app.db.models.service import Service
from app.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from app.services.common import get_or_404, paginate

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=List[LocationResponse])
def list_locations(db: Session = Depends(get_db)):
    return db.query(Location).filter(Location.is_active.is_(True)).order_by(Location.city).all()


@router.get("/popular", response_model=List[LocationResponse])
def list_popular_locations(db: Session = Depends(get_db)):
    return (
        db.query(Location)
        .filter(Location.is_active.is_(True), Location.is_popular.is_(True))
        .order_by(Location.city)
        .all()
    )


@router.get("/search", response_model=List[LocationResponse])
def search_locations(
    keyword: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    pattern = f"%{keyword.strip()}%"
    q = (
        db.query(Location)
        .filter(
            Location.is_active.is_(True),
            or_(
                Location.city.ilike(pattern),
                Location.region.ilike(pattern),
                Location.country.ilike(pattern),
            ),
        )
        .order_by(Location.city)
    )
    return paginate(q, page, per_page)


# Admin: includes inactive locations
@router.get("/admin", response_model=List[LocationResponse])
def list_all_locations(db: Session = Depends(get_db), admin: Principal = Depends(require_admin)):
    return db.query(Location).order_by(Location.city).all()


@router.get("/{location_id}", response_model=LocationResponse)
def get_location(location_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Location, location_id, "Location")


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
def create_location(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    location = Location(**payload.model_dump(), is_active=True)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


@router.put("/{location_id}", response_model=LocationResponse)
def update_location(
    location_id: int,
    payload: LocationUpdate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    location = get_or_404(db, Location, location_id, "Location")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(location, field, value)

    db.commit()
    db.refresh(location)
    return location


@router.patch("/{location_id}/status", response_model=LocationResponse)
def toggle_location_status(
    location_id: int,
    is_active: bool = Query(...),
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    location = get_or_404(db, Location, location_id, "Location")
    location.is_active = is_active
    db.commit()
    db.refresh(location)
    return location


@router.patch("/{location_id}/popular", response_model=LocationResponse)
def toggle_location_popular(
    location_id: int,
    is_popular: bool = Query(...),
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    location = get_or_404(db, Location, location_id, "Location")
    location.is_popular = is_popular
    db.commit()
    db.refresh(location)
    return location


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_location(
    location_id: int,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    location = get_or_404(db, Location, location_id, "Location")

    if db.query(Service.id).filter(Service.location_id == location.id).first():
        raise ConflictError("Location still has services and cannot be deleted")

    db.delete(location)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
