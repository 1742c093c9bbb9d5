import datetime

import pytest
from sqlalchemy import select

from backend.database import db
from backend.errors import AuthorizationError, NotFoundError, ValidationError
from backend.models import ParkingLocation, ParkingTimer, utcnow


def active_locations(user_id):
    return db.session.execute(
        select(ParkingLocation).where(ParkingLocation.user_id == user_id, ParkingLocation.is_active.is_(True))
    ).scalars().all()


def test_repeated_parking_leaves_only_latest_active(service, make_user):
    user = make_user()

    created = [
        service.create_parking_location(user.id, "40.7128000", f"-74.00{i}0000")
        for i in range(5)
    ]

    active = active_locations(user.id)
    assert [loc.id for loc in active] == [created[-1].id]
    assert all(not loc.is_active for loc in created[:-1])


def test_new_location_is_active_with_exact_coordinates(service, make_user):
    user = make_user()
    before = utcnow()

    location = service.create_parking_location(user.id, "40.7128000", "-74.0060000", "Work", "Level 2")

    assert location.is_active is True
    assert location.latitude == "40.7128000"
    assert location.longitude == "-74.0060000"
    assert location.location_name == "Work"
    assert location.notes == "Level 2"
    assert before <= location.parked_at <= utcnow()


def test_get_active_location_without_one_raises_not_found(service, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        service.get_active_parking_location(user.id)


def test_ending_location_cascades_to_timer(service, make_user):
    user = make_user()
    location = service.create_parking_location(user.id, "1.5", "2.5")
    timer = service.create_timer(location.id, user.id, 30)

    service.end_parking_location(location.id, user.id)

    db.session.expire_all()
    assert db.session.get(ParkingLocation, location.id).is_active is False
    assert db.session.get(ParkingTimer, timer.id).is_active is False


def test_ending_someone_elses_location_is_forbidden(service, make_user):
    owner = make_user("alice")
    intruder = make_user("mallory")
    location = service.create_parking_location(owner.id, "1.5", "2.5")

    with pytest.raises(AuthorizationError):
        service.end_parking_location(location.id, intruder.id)

    db.session.expire_all()
    assert db.session.get(ParkingLocation, location.id).is_active is True


def test_ending_missing_location_raises_not_found(service, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        service.end_parking_location(9999, user.id)


def test_history_is_newest_first_and_limited(service, make_user):
    user = make_user()
    other = make_user("bob")
    ids = [service.create_parking_location(user.id, "1", str(i)).id for i in range(4)]
    service.create_parking_location(other.id, "5", "5")

    history = service.get_history(user.id, limit=3)

    assert [h.id for h in history] == list(reversed(ids))[:3]
    assert history[0].is_active is True
    assert all(h.user_id == user.id for h in history)


def test_timer_end_time_is_duration_after_creation(service, make_user):
    user = make_user()
    location = service.create_parking_location(user.id, "1", "2")

    before = utcnow()
    timer = service.create_timer(location.id, user.id, 90)
    after = utcnow()

    assert timer.duration_minutes == 90
    assert before + datetime.timedelta(minutes=90) <= timer.end_time <= after + datetime.timedelta(minutes=90)


def test_second_timer_replaces_the_first(service, make_user):
    user = make_user()
    location = service.create_parking_location(user.id, "1", "2")
    first = service.create_timer(location.id, user.id, 30)
    second = service.create_timer(location.id, user.id, 45)

    db.session.expire_all()
    assert db.session.get(ParkingTimer, first.id).is_active is False
    assert service.get_active_timer(location.id).id == second.id


def test_timer_on_foreign_location_is_forbidden(service, make_user):
    owner = make_user("alice")
    intruder = make_user("mallory")
    location = service.create_parking_location(owner.id, "1", "2")

    with pytest.raises(AuthorizationError):
        service.create_timer(location.id, intruder.id, 30)
    with pytest.raises(AuthorizationError):
        service.create_timer(12345, intruder.id, 30)
    with pytest.raises(AuthorizationError):
        service.get_active_timer(location.id, requesting_user_id=intruder.id)


@pytest.mark.parametrize("duration", [0, -5, 1.5, True])
def test_timer_duration_must_be_positive_integer(service, make_user, duration):
    user = make_user()
    location = service.create_parking_location(user.id, "1", "2")

    with pytest.raises(ValidationError):
        service.create_timer(location.id, user.id, duration)


def test_cancel_timer(service, make_user):
    user = make_user()
    location = service.create_parking_location(user.id, "1", "2")
    timer = service.create_timer(location.id, user.id, 15)

    service.cancel_timer(timer.id)

    with pytest.raises(NotFoundError):
        service.get_active_timer(location.id)


def test_reparking_scenario(service, make_user):
    user = make_user()
    first = service.create_parking_location(user.id, "40.7128000", "-74.0060000")
    timer = service.create_timer(first.id, user.id, 30)
    drift = abs((timer.end_time - first.parked_at) - datetime.timedelta(minutes=30))
    assert drift < datetime.timedelta(seconds=5)

    second = service.create_parking_location(user.id, "40.7130000", "-74.0050000")

    db.session.expire_all()
    assert db.session.get(ParkingLocation, first.id).is_active is False
    assert db.session.get(ParkingTimer, timer.id).is_active is False
    assert service.get_active_parking_location(user.id).id == second.id
