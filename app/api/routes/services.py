# app/api/routes/services.py
import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.permissions import MANAGE_SERVICE, PROVIDER_OR_ADMIN, Principal, authorize
from app.core.security import get_current_principal, require_admin, require_policy
from app.core.storage import get_storage
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.category import Category
from app.db.models.location import Location
from app.db.models.service import Service, ServiceType
from app.db.models.user import User
from app.schemas.service import ServiceCreate, ServiceDetailResponse, ServiceResponse, ServiceUpdate
from app.services.common import get_or_404, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["services"])


def _active_services(db: Session):
    return db.query(Service).filter(Service.is_active.is_(True))


# Public browsing

@router.get("", response_model=List[ServiceResponse])
def list_services(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return paginate(_active_services(db).order_by(Service.id), page, per_page)


@router.get("/search", response_model=List[ServiceResponse])
def search_services(
    keyword: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    pattern = f"%{keyword.strip()}%"
    q = _active_services(db).filter(
        or_(Service.title.ilike(pattern), Service.description.ilike(pattern))
    )
    return paginate(q.order_by(Service.id), page, per_page)


@router.get("/price-range", response_model=List[ServiceResponse])
def services_in_price_range(
    min_price: Decimal = Query(..., ge=0),
    max_price: Decimal = Query(..., ge=0),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    if min_price > max_price:
        raise ValidationError("min_price must not exceed max_price")

    q = _active_services(db).filter(Service.price >= min_price, Service.price <= max_price)
    return paginate(q.order_by(Service.price), page, per_page)


@router.get("/top-rated", response_model=List[ServiceResponse])
def top_rated_services(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = _active_services(db).order_by(desc(Service.avg_rating), desc(Service.review_count), Service.id)
    return paginate(q, page, per_page)


@router.get("/popular", response_model=List[ServiceResponse])
def popular_services(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    # Left join so services without bookings still show up, at the bottom
    bookings_count = func.count(Booking.id)
    q = (
        db.query(Service)
        .outerjoin(Booking, Booking.service_id == Service.id)
        .filter(Service.is_active.is_(True))
        .group_by(Service.id)
        .order_by(desc(bookings_count), Service.id)
    )
    return paginate(q, page, per_page)


@router.get("/type/{service_type}", response_model=List[ServiceResponse])
def services_by_type(
    service_type: ServiceType,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = _active_services(db).filter(Service.type == service_type).order_by(Service.id)
    return paginate(q, page, per_page)


@router.get("/category/{category_id}", response_model=List[ServiceResponse])
def services_by_category(category_id: int, db: Session = Depends(get_db)):
    get_or_404(db, Category, category_id, "Category")
    return _active_services(db).filter(Service.category_id == category_id).order_by(Service.id).all()


@router.get("/location/{location_id}", response_model=List[ServiceResponse])
def services_by_location(location_id: int, db: Session = Depends(get_db)):
    get_or_404(db, Location, location_id, "Location")
    return _active_services(db).filter(Service.location_id == location_id).order_by(Service.id).all()


@router.get("/provider/{provider_id}", response_model=List[ServiceResponse])
def services_by_provider(provider_id: int, db: Session = Depends(get_db)):
    get_or_404(db, User, provider_id, "Provider")
    return _active_services(db).filter(Service.provider_id == provider_id).order_by(Service.id).all()


@router.get("/{service_id}", response_model=ServiceDetailResponse)
def get_service(service_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Service, service_id, "Service")


# Provider manages services

@router.post("", response_model=ServiceDetailResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: ServiceCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_policy(PROVIDER_OR_ADMIN)),
):
    get_or_404(db, Category, payload.category_id, "Category")
    get_or_404(db, Location, payload.location_id, "Location")

    data = payload.model_dump()
    if not data.get("thumbnail_url") and data["images"]:
        data["thumbnail_url"] = data["images"][0]

    service = Service(provider_id=principal.id, is_active=True, is_verified=False, **data)
    db.add(service)
    db.commit()
    db.refresh(service)

    logger.info("Service %s created by user %s", service.id, principal.id)
    return service


@router.put("/{service_id}", response_model=ServiceDetailResponse)
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    service = get_or_404(db, Service, service_id, "Service")
    authorize(MANAGE_SERVICE, principal, service)

    changes = payload.model_dump(exclude_unset=True)
    # Columns below are NOT NULL, an explicit null means "leave as is"
    for field in ("title", "type", "price", "pricing_unit", "amenities", "policies", "images",
                  "category_id", "location_id"):
        if field in changes and changes[field] is None:
            del changes[field]

    if "category_id" in changes:
        get_or_404(db, Category, changes["category_id"], "Category")
    if "location_id" in changes:
        get_or_404(db, Location, changes["location_id"], "Location")

    for field, value in changes.items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service


# Soft delete, bookings and reviews keep pointing at the row
@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    service = get_or_404(db, Service, service_id, "Service")
    authorize(MANAGE_SERVICE, principal, service)

    service.is_active = False
    db.commit()

    logger.info("Service %s deactivated by user %s", service.id, principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{service_id}/status", response_model=ServiceResponse)
def toggle_service_status(
    service_id: int,
    is_active: bool = Query(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    service = get_or_404(db, Service, service_id, "Service")
    authorize(MANAGE_SERVICE, principal, service)

    service.is_active = is_active
    db.commit()
    db.refresh(service)
    return service


@router.patch("/{service_id}/verify", response_model=ServiceResponse)
def verify_service(
    service_id: int,
    is_verified: bool = Query(True),
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    service = get_or_404(db, Service, service_id, "Service")
    service.is_verified = is_verified
    db.commit()
    db.refresh(service)
    return service


@router.post("/{service_id}/images", response_model=ServiceDetailResponse)
def upload_service_images(
    service_id: int,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    service = get_or_404(db, Service, service_id, "Service")
    authorize(MANAGE_SERVICE, principal, service)

    storage = get_storage()
    urls = []
    for upload in files:
        data = upload.file.read()
        urls.append(storage.upload_image(data, upload.filename or "image"))

    service.images.extend(urls)
    if not service.thumbnail_url and service.images:
        service.thumbnail_url = service.images[0]

    db.commit()
    db.refresh(service)
    return service
