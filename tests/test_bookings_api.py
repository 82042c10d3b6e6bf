from datetime import timedelta
from decimal import Decimal

from conftest import auth_headers, make_service, open_window, principal_of

from app.core.exceptions import BookingRejected
from app.db.models.booking import Booking, BookingStatus
from app.schemas.booking import BookingCreate
from app.services import bookings as booking_service
from app.services.overlap import ALREADY_BOOKED, NOT_AVAILABLE, find_conflicting_bookings


def _payload(service, start, end, **extra):
    body = {
        "service_id": service.id,
        "start_datetime": start.isoformat(),
        "end_datetime": end.isoformat(),
    }
    body.update(extra)
    return body


def _existing_booking(db, service, user, start, end, status):
    booking = Booking(
        user_id=user.id,
        service_id=service.id,
        start_datetime=start,
        end_datetime=end,
        total_price=Decimal("100"),
        status=status,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def test_create_booking_computes_price(client, db, customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=5))
    start = base_time + timedelta(hours=1)

    response = client.post(
        "/bookings",
        json=_payload(service, start, start + timedelta(hours=25), guest_count=2),
        headers=auth_headers(customer),
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "PENDING"
    assert Decimal(str(data["total_price"])) == Decimal("200")
    assert data["user"]["id"] == customer.id
    assert data["service"]["id"] == service.id


def test_create_booking_requires_auth(client, db, service, base_time):
    response = client.post("/bookings", json=_payload(service, base_time, base_time + timedelta(hours=2)))
    assert response.status_code == 401


def test_overlapping_live_booking_is_rejected(client, db, customer, other_customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=1))
    _existing_booking(
        db, service, other_customer,
        base_time + timedelta(hours=11), base_time + timedelta(hours=13),
        BookingStatus.CONFIRMED,
    )

    response = client.post(
        "/bookings",
        json=_payload(service, base_time + timedelta(hours=10), base_time + timedelta(hours=12)),
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == ALREADY_BOOKED


def test_cancelled_booking_does_not_block(client, db, customer, other_customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=1))
    _existing_booking(
        db, service, other_customer,
        base_time + timedelta(hours=11), base_time + timedelta(hours=13),
        BookingStatus.CANCELLED_BY_PROVIDER,
    )

    response = client.post(
        "/bookings",
        json=_payload(service, base_time + timedelta(hours=10), base_time + timedelta(hours=12)),
        headers=auth_headers(customer),
    )

    assert response.status_code == 201, response.text


def test_booking_touching_live_booking_is_rejected(client, db, customer, other_customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=1))
    _existing_booking(
        db, service, other_customer,
        base_time + timedelta(hours=12), base_time + timedelta(hours=14),
        BookingStatus.CONFIRMED,
    )

    ends_at_start = client.post(
        "/bookings",
        json=_payload(service, base_time + timedelta(hours=10), base_time + timedelta(hours=12)),
        headers=auth_headers(customer),
    )
    starts_at_end = client.post(
        "/bookings",
        json=_payload(service, base_time + timedelta(hours=14), base_time + timedelta(hours=16)),
        headers=auth_headers(customer),
    )

    assert ends_at_start.status_code == 400
    assert ends_at_start.json()["detail"] == ALREADY_BOOKED
    assert starts_at_end.status_code == 400
    assert db.query(Booking).count() == 1


def test_booking_spanning_live_booking_is_rejected(db, customer, other_customer, service, base_time):
    _existing_booking(
        db, service, other_customer,
        base_time + timedelta(hours=12), base_time + timedelta(hours=13),
        BookingStatus.PENDING,
    )

    conflicts = find_conflicting_bookings(
        db, service.id, base_time + timedelta(hours=10), base_time + timedelta(hours=15)
    )

    assert len(conflicts) == 1


def test_booking_other_service_does_not_conflict(db, customer, provider, category, location, service, base_time):
    other = make_service(db, provider, category, location, title="Mountain cabin")
    _existing_booking(
        db, other, customer, base_time, base_time + timedelta(hours=5), BookingStatus.CONFIRMED
    )

    assert find_conflicting_bookings(db, service.id, base_time, base_time + timedelta(hours=5)) == []


def test_no_open_window_is_rejected(client, db, customer, service, base_time):
    response = client.post(
        "/bookings",
        json=_payload(service, base_time, base_time + timedelta(hours=2)),
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == NOT_AVAILABLE


def test_blocked_window_does_not_open_service(client, db, customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=1), is_available=False)

    response = client.post(
        "/bookings",
        json=_payload(service, base_time + timedelta(hours=1), base_time + timedelta(hours=2)),
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == NOT_AVAILABLE


def test_past_start_is_rejected(client, db, customer, service, base_time):
    start = base_time - timedelta(days=60)
    open_window(db, service, start, base_time)

    response = client.post(
        "/bookings",
        json=_payload(service, start, start + timedelta(hours=2)),
        headers=auth_headers(customer),
    )

    assert response.status_code == 400


def test_guest_count_over_capacity_is_rejected(client, db, customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=1))

    response = client.post(
        "/bookings",
        json=_payload(service, base_time, base_time + timedelta(hours=2), guest_count=service.capacity + 1),
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert "capacity" in response.json()["detail"]


def test_inactive_service_is_rejected(client, db, customer, service, base_time):
    service.is_active = False
    db.commit()
    open_window(db, service, base_time, base_time + timedelta(days=1))

    response = client.post(
        "/bookings",
        json=_payload(service, base_time, base_time + timedelta(hours=2)),
        headers=auth_headers(customer),
    )

    assert response.status_code == 400


def test_unknown_service_is_not_found(client, customer, base_time):
    response = client.post(
        "/bookings",
        json={
            "service_id": 999,
            "start_datetime": base_time.isoformat(),
            "end_datetime": (base_time + timedelta(hours=1)).isoformat(),
        },
        headers=auth_headers(customer),
    )
    assert response.status_code == 404


def test_second_identical_request_is_rejected(db, customer, other_customer, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(days=1))
    payload = BookingCreate(
        service_id=service.id,
        start_datetime=base_time + timedelta(hours=1),
        end_datetime=base_time + timedelta(hours=3),
    )

    booking_service.create_booking(db, principal_of(customer), payload)

    try:
        booking_service.create_booking(db, principal_of(other_customer), payload)
    except BookingRejected as exc:
        assert exc.message == ALREADY_BOOKED
    else:
        raise AssertionError("second booking was accepted")
    assert db.query(Booking).count() == 1


def test_booking_visibility(client, db, customer, other_customer, provider, admin, service, base_time):
    booking = _existing_booking(
        db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.PENDING
    )
    url = f"/bookings/{booking.id}"

    assert client.get(url, headers=auth_headers(customer)).status_code == 200
    assert client.get(url, headers=auth_headers(provider)).status_code == 200
    assert client.get(url, headers=auth_headers(admin)).status_code == 200
    assert client.get(url, headers=auth_headers(other_customer)).status_code == 403
    assert client.get("/bookings/999", headers=auth_headers(customer)).status_code == 404


def test_list_my_bookings_by_status(client, db, customer, service, base_time):
    _existing_booking(db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.PENDING)
    _existing_booking(
        db, service, customer,
        base_time + timedelta(days=1), base_time + timedelta(days=1, hours=2),
        BookingStatus.CONFIRMED,
    )

    all_mine = client.get("/bookings", headers=auth_headers(customer))
    confirmed = client.get("/bookings/status/CONFIRMED", headers=auth_headers(customer))

    assert len(all_mine.json()) == 2
    assert [b["status"] for b in confirmed.json()] == ["CONFIRMED"]


def test_provider_lists_only_own_service_bookings(
    client, db, customer, provider, other_provider, category, location, service, base_time
):
    other_service = make_service(db, other_provider, category, location, title="Boat trip")
    _existing_booking(db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.PENDING)
    _existing_booking(db, other_service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.PENDING)

    response = client.get("/bookings/provider", headers=auth_headers(provider))

    assert response.status_code == 200
    assert [b["service_id"] for b in response.json()] == [service.id]
    assert client.get("/bookings/provider", headers=auth_headers(customer)).status_code == 403


def test_provider_confirms_then_customer_cancels(client, db, customer, provider, service, base_time):
    booking = _existing_booking(
        db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.PENDING
    )
    url = f"/bookings/{booking.id}/status"

    confirmed = client.patch(url, params={"status": "CONFIRMED"}, headers=auth_headers(provider))
    assert confirmed.status_code == 200, confirmed.text
    assert confirmed.json()["status"] == "CONFIRMED"

    no_reason = client.patch(url, params={"status": "CANCELLED_BY_USER"}, headers=auth_headers(customer))
    assert no_reason.status_code == 400

    cancelled = client.patch(
        url,
        params={"status": "CANCELLED_BY_USER", "cancellation_reason": "Flight cancelled"},
        headers=auth_headers(customer),
    )
    assert cancelled.status_code == 200
    body = cancelled.json()
    assert body["status"] == "CANCELLED_BY_USER"
    assert body["cancellation_reason"] == "Flight cancelled"
    assert body["cancelled_at"] is not None


def test_customer_cannot_confirm_own_booking(client, db, customer, service, base_time):
    booking = _existing_booking(
        db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.PENDING
    )

    response = client.patch(
        f"/bookings/{booking.id}/status", params={"status": "CONFIRMED"}, headers=auth_headers(customer)
    )

    assert response.status_code == 403


def test_complete_future_booking_is_rejected(client, db, customer, provider, service, base_time):
    booking = _existing_booking(
        db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.CONFIRMED
    )

    response = client.patch(
        f"/bookings/{booking.id}/status", params={"status": "COMPLETED"}, headers=auth_headers(provider)
    )

    assert response.status_code == 400
    db.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED


def test_complete_after_end(db, customer, provider, service, base_time):
    booking = _existing_booking(
        db, service, customer, base_time, base_time + timedelta(hours=2), BookingStatus.CONFIRMED
    )

    updated = booking_service.update_booking_status(
        db, principal_of(provider), booking.id, "COMPLETED", now=base_time + timedelta(hours=3)
    )

    assert updated.status == BookingStatus.COMPLETED
