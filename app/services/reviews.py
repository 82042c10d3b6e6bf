# app/services/reviews.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.permissions import (
    EDIT_REVIEW,
    MODERATE_REVIEWS,
    REPLY_TO_REVIEW,
    REVIEW_BOOKING,
    Principal,
    authorize,
)
from app.core.timeutils import utcnow
from app.db.models.booking import Booking, BookingStatus
from app.db.models.review import Review
from app.db.models.service import Service
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.services.common import get_or_404, paginate

logger = logging.getLogger(__name__)


def recalculate_service_rating(db: Session, service_id: int) -> Service:
    """
    Refresh the denormalized avg_rating/review_count of a service from its
    visible reviews. Rescans every visible review; called after each write
    that can change the result, inside the same transaction.
    """
    db.flush()

    avg_rating, review_count = (
        db.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.service_id == service_id, Review.is_visible.is_(True))
        .one()
    )

    service = get_or_404(db, Service, service_id, "Service")
    service.avg_rating = float(avg_rating) if avg_rating is not None else 0.0
    service.review_count = int(review_count or 0)

    logger.info(
        "Service %s rating recalculated: avg=%.2f count=%d",
        service_id,
        service.avg_rating,
        service.review_count,
    )
    return service


def create_review(db: Session, principal: Principal, payload: ReviewCreate) -> Review:
    booking = get_or_404(db, Booking, payload.booking_id, "Booking")
    authorize(REVIEW_BOOKING, principal, booking)

    if booking.status != BookingStatus.COMPLETED:
        raise ValidationError("You can only review completed bookings")

    existing = db.query(Review).filter(Review.booking_id == booking.id).first()
    if existing:
        raise ValidationError("A review already exists for this booking")

    review = Review(
        booking_id=booking.id,
        user_id=principal.id,
        service_id=booking.service_id,
        rating=payload.rating,
        comment=payload.comment,
        images=list(payload.images),
        is_visible=True,
    )
    db.add(review)

    try:
        recalculate_service_rating(db, booking.service_id)
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent review of the same booking
        db.rollback()
        raise ValidationError("A review already exists for this booking")

    db.refresh(review)
    logger.info("Review %s created for booking %s", review.id, booking.id)
    return review


def update_review(db: Session, principal: Principal, review_id: int, payload: ReviewUpdate) -> Review:
    review = get_or_404(db, Review, review_id, "Review")
    authorize(EDIT_REVIEW, principal, review)

    if payload.rating is not None:
        review.rating = payload.rating
    if payload.comment is not None:
        review.comment = payload.comment
    if payload.images is not None:
        review.images = list(payload.images)

    recalculate_service_rating(db, review.service_id)
    db.commit()
    db.refresh(review)
    return review


def reply_to_review(
    db: Session, principal: Principal, review_id: int, reply: str, now: Optional[datetime] = None
) -> Review:
    review = get_or_404(db, Review, review_id, "Review")
    authorize(REPLY_TO_REVIEW, principal, review)

    reply = (reply or "").strip()
    if not reply:
        raise ValidationError("Reply cannot be empty")

    review.owner_reply = reply
    review.owner_replied_at = now or utcnow()
    db.commit()
    db.refresh(review)
    return review


def set_review_visibility(db: Session, principal: Principal, review_id: int, is_visible: bool) -> Review:
    review = get_or_404(db, Review, review_id, "Review")
    authorize(MODERATE_REVIEWS, principal, review)

    review.is_visible = is_visible
    recalculate_service_rating(db, review.service_id)
    db.commit()
    db.refresh(review)

    logger.info("Review %s visibility set to %s", review.id, is_visible)
    return review


def delete_review(db: Session, principal: Principal, review_id: int) -> None:
    review = get_or_404(db, Review, review_id, "Review")
    authorize(MODERATE_REVIEWS, principal, review)

    service_id = review.service_id
    db.delete(review)
    recalculate_service_rating(db, service_id)
    db.commit()
    logger.info("Review %s deleted", review_id)


def get_review(db: Session, review_id: int) -> Review:
    return get_or_404(db, Review, review_id, "Review")


def list_service_reviews(db: Session, service_id: int, page: int = 1, per_page: int = 10) -> List[Review]:
    get_or_404(db, Service, service_id, "Service")
    q = (
        db.query(Review)
        .filter(Review.service_id == service_id, Review.is_visible.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return paginate(q, page, per_page)


def list_user_reviews(db: Session, principal: Principal, page: int = 1, per_page: int = 10) -> List[Review]:
    q = (
        db.query(Review)
        .filter(Review.user_id == principal.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return paginate(q, page, per_page)


def list_provider_reviews(db: Session, principal: Principal, page: int = 1, per_page: int = 10) -> List[Review]:
    q = (
        db.query(Review)
        .join(Service, Review.service_id == Service.id)
        .filter(Service.provider_id == principal.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return paginate(q, page, per_page)
