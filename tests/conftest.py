import datetime

import pytest

from backend.app import create_app
from backend.config import TestingConfig
from backend.database import db
from backend.models import User, utcnow
from backend.services import ParkingService
from backend.storage import Storage

PASSWORD = "correct-horse"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def storage(app_ctx):
    return Storage(db.session)


@pytest.fixture
def service(storage):
    return ParkingService(storage)


@pytest.fixture
def make_user(storage):
    """Creates and commits a user; `trial_days_ago` backdates the trial start."""
    def _make_user(username="alice", trial_days_ago=0, premium=False, email=None):
        user = storage.create_user(username, PASSWORD, email=email)
        user.trial_start_date = utcnow() - datetime.timedelta(days=trial_days_ago)
        user.premium_user = premium
        storage.commit()
        return user
    return _make_user


@pytest.fixture
def login(app):
    """Returns a test client holding a session cookie for a newly registered user."""
    def _login(username="alice", trial_days_ago=None, premium=False, email=None):
        client = app.test_client()
        body = {'username': username, 'password': PASSWORD}
        if email:
            body['email'] = email
        response = client.post('/api/register', json=body)
        assert response.status_code == 201, response.get_json()

        if trial_days_ago is not None or premium:
            with app.app_context():
                user = db.session.get(User, response.get_json()['id'])
                if trial_days_ago is not None:
                    user.trial_start_date = utcnow() - datetime.timedelta(days=trial_days_ago)
                user.premium_user = premium
                db.session.commit()

        client.user_id = response.get_json()['id']
        return client
    return _login
