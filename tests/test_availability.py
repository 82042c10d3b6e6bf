from datetime import timedelta

import pytest
from conftest import auth_headers, make_service, open_window, principal_of

from app.core.exceptions import ValidationError
from app.db.models.availability import Availability
from app.services import availability as availability_service


def _window(service, start, end, **extra):
    body = {
        "service_id": service.id,
        "start_datetime": start.isoformat(),
        "end_datetime": end.isoformat(),
    }
    body.update(extra)
    return body


def test_owner_creates_window(client, db, provider, service, base_time):
    response = client.post(
        "/availabilities",
        json=_window(service, base_time, base_time + timedelta(days=1), notes="summer"),
        headers=auth_headers(provider),
    )

    assert response.status_code == 201, response.text
    assert response.json()["is_available"] is True
    assert response.json()["notes"] == "summer"


def test_other_provider_cannot_create_window(client, db, other_provider, service, base_time):
    response = client.post(
        "/availabilities",
        json=_window(service, base_time, base_time + timedelta(days=1)),
        headers=auth_headers(other_provider),
    )

    assert response.status_code == 403


def test_admin_creates_window_for_any_service(client, db, admin, service, base_time):
    response = client.post(
        "/availabilities",
        json=_window(service, base_time, base_time + timedelta(days=1)),
        headers=auth_headers(admin),
    )

    assert response.status_code == 201


def test_empty_window_is_rejected(client, db, provider, service, base_time):
    response = client.post(
        "/availabilities",
        json=_window(service, base_time, base_time),
        headers=auth_headers(provider),
    )

    assert response.status_code == 400


def test_window_for_missing_service(client, provider, base_time):
    response = client.post(
        "/availabilities",
        json={
            "service_id": 999,
            "start_datetime": base_time.isoformat(),
            "end_datetime": (base_time + timedelta(hours=1)).isoformat(),
        },
        headers=auth_headers(provider),
    )

    assert response.status_code == 404


def test_bulk_is_all_or_nothing(client, db, provider, service, base_time):
    response = client.post(
        "/availabilities/bulk",
        json=[
            _window(service, base_time, base_time + timedelta(days=1)),
            _window(service, base_time + timedelta(days=3), base_time + timedelta(days=2)),
        ],
        headers=auth_headers(provider),
    )

    assert response.status_code == 400
    assert db.query(Availability).count() == 0


def test_bulk_must_target_one_service(client, db, provider, category, location, service, base_time):
    other = make_service(db, provider, category, location, title="Second flat")

    response = client.post(
        "/availabilities/bulk",
        json=[
            _window(service, base_time, base_time + timedelta(days=1)),
            _window(other, base_time, base_time + timedelta(days=1)),
        ],
        headers=auth_headers(provider),
    )

    assert response.status_code == 400
    assert db.query(Availability).count() == 0


def test_bulk_creates_every_window(client, db, provider, service, base_time):
    response = client.post(
        "/availabilities/bulk",
        json=[
            _window(service, base_time + timedelta(days=d), base_time + timedelta(days=d, hours=8))
            for d in range(3)
        ],
        headers=auth_headers(provider),
    )

    assert response.status_code == 201, response.text
    assert len(response.json()) == 3


def test_bulk_rejects_empty_list(db, provider):
    with pytest.raises(ValidationError):
        availability_service.create_bulk(db, principal_of(provider), [])


def test_range_queries_touch_inclusive_bounds(client, db, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(hours=4))
    open_window(db, service, base_time + timedelta(hours=10), base_time + timedelta(hours=12), is_available=False)

    in_range = client.get(
        f"/availabilities/service/{service.id}/dates",
        params={
            "start_date": (base_time + timedelta(hours=4)).isoformat(),
            "end_date": (base_time + timedelta(hours=10)).isoformat(),
        },
    )
    available = client.get(
        f"/availabilities/service/{service.id}/available",
        params={
            "start_date": (base_time + timedelta(hours=4)).isoformat(),
            "end_date": (base_time + timedelta(hours=10)).isoformat(),
        },
    )

    assert len(in_range.json()) == 2
    assert len(available.json()) == 1


def test_range_query_rejects_inverted_range(db, service, base_time):
    with pytest.raises(ValidationError):
        availability_service.list_in_range(db, service.id, base_time + timedelta(hours=1), base_time)


def test_list_all_windows(client, db, service, base_time):
    open_window(db, service, base_time, base_time + timedelta(hours=1))
    open_window(db, service, base_time, base_time + timedelta(hours=2))

    response = client.get(f"/availabilities/service/{service.id}")

    assert response.status_code == 200
    assert len(response.json()) == 2


def test_partial_update_keeps_other_fields(client, db, provider, service, base_time):
    window = open_window(db, service, base_time, base_time + timedelta(days=1))

    response = client.put(
        f"/availabilities/{window.id}",
        json={"is_available": False},
        headers=auth_headers(provider),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["is_available"] is False
    assert body["end_datetime"] == (base_time + timedelta(days=1)).isoformat()


def test_update_cannot_invert_window(client, db, provider, service, base_time):
    window = open_window(db, service, base_time, base_time + timedelta(days=1))

    response = client.put(
        f"/availabilities/{window.id}",
        json={"start_datetime": (base_time + timedelta(days=2)).isoformat()},
        headers=auth_headers(provider),
    )

    assert response.status_code == 400


def test_delete_requires_ownership(client, db, provider, other_provider, service, base_time):
    window = open_window(db, service, base_time, base_time + timedelta(days=1))

    forbidden = client.delete(f"/availabilities/{window.id}", headers=auth_headers(other_provider))
    deleted = client.delete(f"/availabilities/{window.id}", headers=auth_headers(provider))

    assert forbidden.status_code == 403
    assert deleted.status_code == 204
    assert db.query(Availability).count() == 0
