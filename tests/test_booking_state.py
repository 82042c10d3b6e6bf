from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.core.exceptions import AuthorizationError, ValidationError
from app.core.permissions import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_PROVIDER, Principal
from app.db.models.booking import Booking, BookingStatus
from app.db.models.service import Service
from app.services.booking_state import TRANSITIONS, apply_transition, can_transition, parse_status

NOW = datetime(2030, 6, 10, 12, 0)

OWNER = Principal(id=1, roles=frozenset({ROLE_CUSTOMER}))
PROVIDER = Principal(id=2, roles=frozenset({ROLE_PROVIDER}))
STRANGER = Principal(id=3, roles=frozenset({ROLE_PROVIDER}))
ADMIN = Principal(id=4, roles=frozenset({ROLE_ADMIN}))


def make_booking(status=BookingStatus.PENDING, start=None, end=None):
    start = start or NOW + timedelta(days=1)
    end = end or start + timedelta(days=2)
    service = Service(id=10, provider_id=PROVIDER.id, price=Decimal("50"))
    return Booking(
        id=100,
        user_id=OWNER.id,
        service_id=service.id,
        service=service,
        start_datetime=start,
        end_datetime=end,
        total_price=Decimal("100"),
        status=status,
    )


def test_provider_confirms_pending_booking():
    booking = apply_transition(make_booking(), "CONFIRMED", PROVIDER, now=NOW)
    assert booking.status == BookingStatus.CONFIRMED


def test_status_value_is_case_insensitive():
    assert parse_status("confirmed") == BookingStatus.CONFIRMED


@pytest.mark.parametrize("value", ["PENDING", "ARCHIVED", ""])
def test_unknown_or_initial_status_is_invalid(value):
    with pytest.raises(ValidationError):
        apply_transition(make_booking(), value, PROVIDER, now=NOW)


def test_customer_cannot_confirm():
    booking = make_booking()
    with pytest.raises(AuthorizationError):
        apply_transition(booking, BookingStatus.CONFIRMED, OWNER, now=NOW)
    assert booking.status == BookingStatus.PENDING


def test_other_provider_cannot_confirm():
    with pytest.raises(AuthorizationError):
        apply_transition(make_booking(), BookingStatus.CONFIRMED, STRANGER, now=NOW)


def test_admin_may_act_as_provider():
    booking = apply_transition(make_booking(), BookingStatus.CONFIRMED, ADMIN, now=NOW)
    assert booking.status == BookingStatus.CONFIRMED


def test_user_cancellation_records_reason_and_time():
    booking = apply_transition(
        make_booking(), BookingStatus.CANCELLED_BY_USER, OWNER, cancellation_reason="  plans changed ", now=NOW
    )
    assert booking.status == BookingStatus.CANCELLED_BY_USER
    assert booking.cancellation_reason == "plans changed"
    assert booking.cancelled_at == NOW


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_cancellation_requires_reason(reason):
    booking = make_booking()
    with pytest.raises(ValidationError):
        apply_transition(booking, BookingStatus.CANCELLED_BY_PROVIDER, PROVIDER, cancellation_reason=reason, now=NOW)
    assert booking.status == BookingStatus.PENDING
    assert booking.cancelled_at is None


def test_provider_cannot_cancel_as_user():
    with pytest.raises(AuthorizationError):
        apply_transition(make_booking(), BookingStatus.CANCELLED_BY_USER, PROVIDER, cancellation_reason="x", now=NOW)


def test_complete_before_end_is_rejected():
    booking = make_booking(start=NOW - timedelta(hours=1), end=NOW + timedelta(hours=1))
    with pytest.raises(ValidationError):
        apply_transition(booking, BookingStatus.COMPLETED, PROVIDER, now=NOW)
    assert booking.status == BookingStatus.PENDING


def test_complete_after_end():
    booking = make_booking(status=BookingStatus.CONFIRMED, start=NOW - timedelta(days=2), end=NOW)
    assert apply_transition(booking, BookingStatus.COMPLETED, PROVIDER, now=NOW).status == BookingStatus.COMPLETED


def test_no_show_needs_start_reached():
    with pytest.raises(ValidationError):
        apply_transition(make_booking(), BookingStatus.NO_SHOW, PROVIDER, now=NOW)

    started = make_booking(status=BookingStatus.CONFIRMED, start=NOW, end=NOW + timedelta(hours=2))
    assert apply_transition(started, BookingStatus.NO_SHOW, PROVIDER, now=NOW).status == BookingStatus.NO_SHOW


@pytest.mark.parametrize(
    "terminal",
    [
        BookingStatus.CANCELLED_BY_USER,
        BookingStatus.CANCELLED_BY_PROVIDER,
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
    ],
)
def test_terminal_states_do_not_move(terminal):
    booking = make_booking(status=terminal)
    with pytest.raises(ValidationError):
        apply_transition(booking, BookingStatus.CONFIRMED, PROVIDER, now=NOW)
    assert booking.status == terminal


def test_confirmed_cannot_be_confirmed_again():
    with pytest.raises(ValidationError):
        apply_transition(make_booking(status=BookingStatus.CONFIRMED), BookingStatus.CONFIRMED, PROVIDER, now=NOW)


def test_transition_table():
    assert can_transition(BookingStatus.PENDING, BookingStatus.NO_SHOW)
    assert can_transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED_BY_USER)
    assert not can_transition(BookingStatus.COMPLETED, BookingStatus.CANCELLED_BY_USER)
    assert BookingStatus.PENDING not in {t for targets in TRANSITIONS.values() for t in targets}
