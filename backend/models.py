import datetime

from werkzeug.security import generate_password_hash, check_password_hash

from backend.database import db

# This file contains the schema for the ParkPal database.
# SQLAlchemy ORM maps the classes below to SQL tables.


def utcnow():
    """Naive UTC timestamp; every datetime column stores UTC without tzinfo."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def isoformat(value):
    if value is None:
        return None
    return value.replace(tzinfo=datetime.timezone.utc).isoformat()


class User(db.Model):
    """
    Account with login details plus trial and premium state.
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(256), nullable=False)
    # Set once at registration; the 7-day trial window counts from here
    trial_start_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    premium_user = db.Column(db.Boolean, nullable=False, default=False)
    email = db.Column(db.String(120), nullable=True)
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True)

    # Link to the parking history
    parking_locations = db.relationship('ParkingLocation', backref='user', lazy=True)

    def set_password(self, password):
        # Hashes the password before storing it
        self.password = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'trialStartDate': isoformat(self.trial_start_date),
            'premiumUser': self.premium_user,
            'stripeCustomerId': self.stripe_customer_id,
            'stripeSubscriptionId': self.stripe_subscription_id,
        }


class ParkingLocation(db.Model):
    """
    Where a user left their vehicle. Only one row per user may be active;
    older rows stay around as history.
    """
    __tablename__ = 'parking_locations'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Coordinates are kept as decimal text so no precision is lost
    latitude = db.Column(db.String(32), nullable=False)
    longitude = db.Column(db.String(32), nullable=False)

    location_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    parked_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    timers = db.relationship('ParkingTimer', backref='parking_location', lazy=True)

    __table_args__ = (
        # At most one active location per user
        db.Index(
            'uq_parking_locations_active_user', 'user_id',
            unique=True,
            sqlite_where=db.text('is_active'),
            postgresql_where=db.text('is_active'),
        ),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'locationName': self.location_name,
            'notes': self.notes,
            'parkedAt': isoformat(self.parked_at),
            'isActive': self.is_active,
        }


class ParkingTimer(db.Model):
    """
    Expiry reminder for a parking location. end_time is fixed at creation;
    expiry itself is observed by the client.
    """
    __tablename__ = 'parking_timers'

    id = db.Column(db.Integer, primary_key=True)
    parking_location_id = db.Column(db.Integer, db.ForeignKey('parking_locations.id'), nullable=False, index=True)
    duration_minutes = db.Column(db.Integer, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (
        # At most one active timer per location
        db.Index(
            'uq_parking_timers_active_location', 'parking_location_id',
            unique=True,
            sqlite_where=db.text('is_active'),
            postgresql_where=db.text('is_active'),
        ),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'parkingLocationId': self.parking_location_id,
            'durationMinutes': self.duration_minutes,
            'endTime': isoformat(self.end_time),
            'isActive': self.is_active,
        }
