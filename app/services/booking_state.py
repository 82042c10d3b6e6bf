# app/services/booking_state.py
"""
Booking status state machine.

PENDING is the only initial state. A pending booking may move to any other
state, a confirmed one may still be cancelled, completed or marked as a
no-show, and every other state is terminal. Each target state carries the
policy deciding who may request it and the temporal precondition that must
hold at the time of the request.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, Union

from app.core.exceptions import ValidationError
from app.core.permissions import BOOKING_OWNER, BOOKING_PROVIDER, Policy, Principal, authorize
from app.core.timeutils import utcnow
from app.db.models.booking import Booking, BookingStatus

S = BookingStatus

TRANSITIONS = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED_BY_USER, S.CANCELLED_BY_PROVIDER, S.COMPLETED, S.NO_SHOW}),
    S.CONFIRMED: frozenset({S.CANCELLED_BY_USER, S.CANCELLED_BY_PROVIDER, S.COMPLETED, S.NO_SHOW}),
}


@dataclass(frozen=True)
class TransitionRule:
    policy: Policy
    requires_reason: bool = False
    precondition: Optional[Callable[[Booking, datetime], bool]] = None
    precondition_error: str = ""


def _has_ended(booking: Booking, now: datetime) -> bool:
    return booking.end_datetime <= now


def _has_started(booking: Booking, now: datetime) -> bool:
    return booking.start_datetime <= now


RULES = {
    S.CONFIRMED: TransitionRule(
        policy=replace(BOOKING_PROVIDER, message="Only service providers can confirm bookings"),
    ),
    S.CANCELLED_BY_USER: TransitionRule(
        policy=replace(BOOKING_OWNER, message="Only booking users can cancel as user"),
        requires_reason=True,
    ),
    S.CANCELLED_BY_PROVIDER: TransitionRule(
        policy=replace(BOOKING_PROVIDER, message="Only service providers can cancel as provider"),
        requires_reason=True,
    ),
    S.COMPLETED: TransitionRule(
        policy=replace(BOOKING_PROVIDER, message="Only service providers can mark bookings as completed"),
        precondition=_has_ended,
        precondition_error="Cannot mark booking as completed before its end date",
    ),
    S.NO_SHOW: TransitionRule(
        policy=replace(BOOKING_PROVIDER, message="Only service providers can mark bookings as no-show"),
        precondition=_has_started,
        precondition_error="Cannot mark booking as no-show before its start date",
    ),
}


def parse_status(value: Union[str, BookingStatus]) -> BookingStatus:
    """Map a requested status onto a target the machine can move to."""
    try:
        status = BookingStatus(str(getattr(value, "value", value)).upper())
    except ValueError:
        raise ValidationError("Invalid booking status")
    if status not in RULES:
        raise ValidationError("Invalid booking status")
    return status


def can_transition(source: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS.get(source, frozenset())


def apply_transition(
    booking: Booking,
    target: Union[str, BookingStatus],
    principal: Principal,
    cancellation_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """Move ``booking`` to ``target`` in place, or raise without touching it."""
    target = parse_status(target)
    rule = RULES[target]

    authorize(rule.policy, principal, booking)

    if not can_transition(booking.status, target):
        raise ValidationError(
            f"Cannot change booking status from {booking.status.value} to {target.value}"
        )

    now = now or utcnow()
    if rule.precondition is not None and not rule.precondition(booking, now):
        raise ValidationError(rule.precondition_error)

    reason = (cancellation_reason or "").strip()
    if rule.requires_reason:
        if not reason:
            raise ValidationError("Cancellation reason is required")
        booking.cancellation_reason = reason
        booking.cancelled_at = now

    booking.status = target
    return booking
