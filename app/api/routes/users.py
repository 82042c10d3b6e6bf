# app/api/routes/users.py
import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.core.permissions import MANAGE_USER, Principal, authorize
from app.core.security import get_current_principal, get_current_user, hash_password, require_admin
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.review import Review
from app.db.models.service import Service
from app.db.models.user import User
from app.schemas.user import UserResponse, UserUpdate
from app.services.common import get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _apply_update(user: User, update_data: UserUpdate):
    changes = update_data.model_dump(exclude_unset=True)
    # explicit nulls leave the field unchanged
    changes = {field: value for field, value in changes.items() if value is not None}

    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)

    for field, value in changes.items():
        setattr(user, field, value)


@router.get("/me", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserResponse)
def update_me(
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _apply_update(current_user, update_data)

    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return get_or_404(db, User, user_id, "User")


# Self or admin

@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    user = get_or_404(db, User, user_id, "User")
    authorize(MANAGE_USER, principal, user)

    _apply_update(user, update_data)

    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    user = get_or_404(db, User, user_id, "User")
    authorize(MANAGE_USER, principal, user)

    # bookings, reviews and listed services keep their history; deactivate instead
    has_history = (
        db.query(Booking.id).filter(Booking.user_id == user.id).first()
        or db.query(Review.id).filter(Review.user_id == user.id).first()
        or db.query(Service.id).filter(Service.provider_id == user.id).first()
    )
    if has_history:
        raise ConflictError("User has bookings, reviews or services and cannot be deleted")

    db.delete(user)
    db.commit()

    logger.info("User %s deleted by user %s", user_id, principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Admin

@router.patch("/{user_id}/status", response_model=UserResponse)
def toggle_user_status(
    user_id: int,
    is_active: bool = Query(...),
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    user = get_or_404(db, User, user_id, "User")
    user.is_active = is_active
    db.commit()
    db.refresh(user)

    logger.info("User %s active=%s set by admin %s", user.id, is_active, admin.id)
    return user


@router.patch("/{user_id}/verify", response_model=UserResponse)
def verify_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    user = get_or_404(db, User, user_id, "User")
    user.is_verified = True
    db.commit()
    db.refresh(user)
    return user
