# app/api/routes/review.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.permissions import PROVIDER_OR_ADMIN, Principal
from app.core.security import get_current_principal, require_policy
from app.db.base import get_db
from app.schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from app.services import reviews as review_service

router = APIRouter(prefix="/reviews", tags=["reviews"])


# Visible reviews of a service (public)
@router.get("/service/{service_id}", response_model=List[ReviewResponse])
def list_service_reviews(
    service_id: int,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return review_service.list_service_reviews(db, service_id, page, per_page)


@router.get("/user", response_model=List[ReviewResponse])
def list_my_reviews(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return review_service.list_user_reviews(db, principal, page, per_page)


@router.get("/provider", response_model=List[ReviewResponse])
def list_reviews_of_my_services(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_policy(PROVIDER_OR_ADMIN)),
):
    return review_service.list_provider_reviews(db, principal, page, per_page)


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return review_service.get_review(db, review_id)


# Create review from a completed booking
@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    review_in: ReviewCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return review_service.create_review(db, principal, review_in)


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    review_in: ReviewUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return review_service.update_review(db, principal, review_id, review_in)


# Service owner replies
@router.post("/{review_id}/reply", response_model=ReviewResponse)
def reply_to_review(
    review_id: int,
    reply: str = Query(..., min_length=1, max_length=1000),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return review_service.reply_to_review(db, principal, review_id, reply)


# Admin: hide / show a review (and recalc)
@router.patch("/{review_id}/visibility", response_model=ReviewResponse)
def toggle_review_visibility(
    review_id: int,
    is_visible: bool = Query(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return review_service.set_review_visibility(db, principal, review_id, is_visible)


# Admin: delete a review (and recalc)
@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    review_service.delete_review(db, principal, review_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
