# app/api/routes/categories.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.core.permissions import Principal
from app.core.security import require_admin
from app.db.base import get_db
from app.db.models.category import Category
from app.db.models.service import Service
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.services.common import get_or_404

router = APIRouter(prefix="/categories", tags=["categories"])


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None):
    q = db.query(Category).filter(func.lower(Category.name) == name.strip().lower())
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise ConflictError(f"Category with name '{name}' already exists")


@router.get("", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).filter(Category.is_active.is_(True)).order_by(Category.name).all()


# Admin: includes inactive categories
@router.get("/admin", response_model=List[CategoryResponse])
def list_all_categories(db: Session = Depends(get_db), admin: Principal = Depends(require_admin)):
    return db.query(Category).order_by(Category.name).all()


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Category, category_id, "Category")


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    _ensure_unique_name(db, payload.name)

    category = Category(
        name=payload.name.strip(),
        description=payload.description,
        icon_url=payload.icon_url,
        is_active=True,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    category = get_or_404(db, Category, category_id, "Category")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name"):
        _ensure_unique_name(db, changes["name"], exclude_id=category.id)
        changes["name"] = changes["name"].strip()

    for field, value in changes.items():
        setattr(category, field, value)

    db.commit()
    db.refresh(category)
    return category


@router.patch("/{category_id}/status", response_model=CategoryResponse)
def toggle_category_status(
    category_id: int,
    is_active: bool = Query(...),
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    category = get_or_404(db, Category, category_id, "Category")
    category.is_active = is_active
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    category = get_or_404(db, Category, category_id, "Category")

    in_use = db.query(Service.id).filter(Service.category_id == category.id).first()
    if in_use:
        raise ConflictError("Category still has services and cannot be deleted")

    db.delete(category)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
