"""
Persistence adapter.

Thin keyed CRUD over the users, parking_locations and parking_timers tables.
Nothing in here commits: the caller owns the unit of work and decides when to
commit() or rollback().
"""

import logging

from sqlalchemy import select, update

from backend.models import User, ParkingLocation, ParkingTimer, utcnow

logger = logging.getLogger(__name__)


class Storage:

    def __init__(self, session):
        self.session = session

    # ==========================================
    # USERS
    # ==========================================

    def get_user(self, user_id):
        return self.session.get(User, user_id)

    def get_user_by_username(self, username):
        return self.session.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

    def create_user(self, username, password, email=None):
        user = User(username=username, email=email, trial_start_date=utcnow(), premium_user=False)
        user.set_password(password)
        self.session.add(user)
        self.session.flush()
        return user

    def update_user_premium_status(self, user_id, is_premium):
        user = self.get_user(user_id)
        if user is None:
            raise LookupError(f"User {user_id} not found")
        user.premium_user = is_premium
        self.session.flush()
        return user

    def update_stripe_customer_id(self, user_id, customer_id):
        user = self.get_user(user_id)
        if user is None:
            raise LookupError(f"User {user_id} not found")
        user.stripe_customer_id = customer_id
        self.session.flush()
        return user

    # ==========================================
    # PARKING LOCATIONS
    # ==========================================

    def create_parking_location(self, user_id, latitude, longitude, location_name=None, notes=None, parked_at=None):
        location = ParkingLocation(
            user_id=user_id,
            latitude=latitude,
            longitude=longitude,
            location_name=location_name,
            notes=notes,
            parked_at=parked_at or utcnow(),
            is_active=True
        )
        self.session.add(location)
        self.session.flush()
        return location

    def get_parking_location(self, location_id):
        return self.session.get(ParkingLocation, location_id)

    def get_active_parking_location(self, user_id):
        return self.session.execute(
            select(ParkingLocation)
            .where(ParkingLocation.user_id == user_id, ParkingLocation.is_active.is_(True))
            .order_by(ParkingLocation.parked_at.desc(), ParkingLocation.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def deactivate_parking_location(self, location_id):
        """Marks one location inactive along with its active timer."""
        self.session.execute(
            update(ParkingLocation)
            .where(ParkingLocation.id == location_id)
            .values(is_active=False)
        )
        self.deactivate_timers_for_location(location_id)

    def deactivate_parking_locations_for_user(self, user_id):
        """Ends every active location of a user, cascading to their timers.

        Returns the ids that were deactivated.
        """
        active_ids = self.session.execute(
            select(ParkingLocation.id)
            .where(ParkingLocation.user_id == user_id, ParkingLocation.is_active.is_(True))
        ).scalars().all()

        for location_id in active_ids:
            self.deactivate_parking_location(location_id)
        return list(active_ids)

    def get_parking_history(self, user_id, limit=10):
        return self.session.execute(
            select(ParkingLocation)
            .where(ParkingLocation.user_id == user_id)
            .order_by(ParkingLocation.parked_at.desc(), ParkingLocation.id.desc())
            .limit(limit)
        ).scalars().all()

    # ==========================================
    # PARKING TIMERS
    # ==========================================

    def create_parking_timer(self, parking_location_id, duration_minutes, end_time):
        timer = ParkingTimer(
            parking_location_id=parking_location_id,
            duration_minutes=duration_minutes,
            end_time=end_time,
            is_active=True
        )
        self.session.add(timer)
        self.session.flush()
        return timer

    def get_timer(self, timer_id):
        return self.session.get(ParkingTimer, timer_id)

    def get_active_timer(self, parking_location_id):
        return self.session.execute(
            select(ParkingTimer)
            .where(ParkingTimer.parking_location_id == parking_location_id, ParkingTimer.is_active.is_(True))
            .order_by(ParkingTimer.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def deactivate_timer(self, timer_id):
        result = self.session.execute(
            update(ParkingTimer)
            .where(ParkingTimer.id == timer_id)
            .values(is_active=False)
        )
        return result.rowcount

    def deactivate_timers_for_location(self, parking_location_id):
        result = self.session.execute(
            update(ParkingTimer)
            .where(ParkingTimer.parking_location_id == parking_location_id, ParkingTimer.is_active.is_(True))
            .values(is_active=False)
        )
        if result.rowcount:
            logger.debug(f"Deactivated {result.rowcount} timer(s) for location {parking_location_id}")
        return result.rowcount

    # ==========================================
    # UNIT OF WORK
    # ==========================================

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
