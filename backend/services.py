"""
Parking domain rules.

A user has at most one active parking location and a location has at most one
active timer. Both rules are applied by deactivating the old row and inserting
the new one inside a single transaction; the partial unique indexes on the
tables catch a concurrent request that slips in between, in which case the
whole step is retried.
"""

import datetime
import logging

from sqlalchemy.exc import IntegrityError

from backend.errors import AuthorizationError, NotFoundError, ValidationError
from backend.models import utcnow

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3
DEFAULT_HISTORY_LIMIT = 10


class ParkingService:

    def __init__(self, storage):
        self.storage = storage

    def _write(self, operation, description):
        """Runs `operation` and commits, retrying when a uniqueness race is lost."""
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            try:
                result = operation()
                self.storage.commit()
                return result
            except IntegrityError:
                self.storage.rollback()
                if attempt == MAX_WRITE_ATTEMPTS:
                    logger.error(f"Giving up on {description} after {attempt} attempts")
                    raise
                logger.warning(f"Concurrent write detected during {description}, retrying ({attempt})")

    def _owned_location(self, location_id, user_id):
        location = self.storage.get_parking_location(location_id)
        if location is None or location.user_id != user_id:
            raise AuthorizationError("Not authorized to access this parking location")
        return location

    # ==========================================
    # PARKING LOCATIONS
    # ==========================================

    def create_parking_location(self, user_id, latitude, longitude, location_name=None, notes=None):
        """Marks a new parking spot, superseding whatever was active before."""
        def operation():
            ended = self.storage.deactivate_parking_locations_for_user(user_id)
            if ended:
                logger.debug(f"User {user_id} re-parked; ended location(s) {ended}")
            return self.storage.create_parking_location(
                user_id=user_id,
                latitude=latitude,
                longitude=longitude,
                location_name=location_name,
                notes=notes,
                parked_at=utcnow()
            )

        location = self._write(operation, f"parking location for user {user_id}")
        logger.info(f"Parking location #{location.id} created for User {user_id}")
        return location

    def get_active_parking_location(self, user_id):
        location = self.storage.get_active_parking_location(user_id)
        if location is None:
            raise NotFoundError("No active parking location found")
        return location

    def end_parking_location(self, location_id, requesting_user_id):
        location = self.storage.get_parking_location(location_id)
        if location is None:
            raise NotFoundError("Parking location not found")
        if location.user_id != requesting_user_id:
            raise AuthorizationError("Not authorized to end this parking session")

        # Location and timer flip together in one commit
        self._write(lambda: self.storage.deactivate_parking_location(location_id),
                    f"ending location {location_id}")
        logger.info(f"Parking location #{location_id} ended by User {requesting_user_id}")

    def get_history(self, user_id, limit=DEFAULT_HISTORY_LIMIT):
        """Most recent locations first, active and ended alike.

        Premium gating happens before this is called.
        """
        return self.storage.get_parking_history(user_id, limit)

    # ==========================================
    # TIMERS
    # ==========================================

    def create_timer(self, location_id, requesting_user_id, duration_minutes):
        self._owned_location(location_id, requesting_user_id)

        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise ValidationError("durationMinutes must be a positive integer")

        def operation():
            self.storage.deactivate_timers_for_location(location_id)
            now = utcnow()
            return self.storage.create_parking_timer(
                parking_location_id=location_id,
                duration_minutes=duration_minutes,
                end_time=now + datetime.timedelta(minutes=duration_minutes)
            )

        timer = self._write(operation, f"timer for location {location_id}")
        logger.info(f"Timer #{timer.id} set for {duration_minutes} min on location {location_id}")
        return timer

    def get_active_timer(self, location_id, requesting_user_id=None):
        if requesting_user_id is not None:
            self._owned_location(location_id, requesting_user_id)

        timer = self.storage.get_active_timer(location_id)
        if timer is None:
            raise NotFoundError("No active timer found")
        return timer

    def cancel_timer(self, timer_id):
        # TODO: check that the timer's location belongs to the caller; any
        # signed-in user can cancel any timer id today.
        changed = self._write(lambda: self.storage.deactivate_timer(timer_id), f"cancelling timer {timer_id}")
        logger.info(f"Timer #{timer_id} cancelled ({changed} row(s) updated)")
