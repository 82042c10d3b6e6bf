# app/services/common.py
from typing import Type, TypeVar

from sqlalchemy.orm import Query, Session

from app.core.exceptions import NotFoundError

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: Type[ModelT], obj_id: int, label: str) -> ModelT:
    obj = db.query(model).filter(model.id == obj_id).first()
    if obj is None:
        raise NotFoundError(f"{label} not found with id: {obj_id}")
    return obj


def paginate(query: Query, page: int = 1, per_page: int = 10) -> list:
    offset = (page - 1) * per_page
    return query.offset(offset).limit(per_page).all()
