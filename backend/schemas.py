"""
Request payload schemas.

Bodies and query strings are parsed into these pydantic models before they
reach the services; `parse()` converts pydantic's errors into the API's own
ValidationError.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.errors import ValidationError


class RequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


def _coordinate(value, name, bound):
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a decimal number")
    if isinstance(value, (int, float)):
        value = repr(value) if isinstance(value, float) else str(value)
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a decimal number")

    text = value.strip()
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"{name} must be a decimal number") from None
    if not number.is_finite() or abs(number) > bound:
        raise ValueError(f"{name} must be between -{bound} and {bound}")
    return text


# ==========================================
# ACCOUNTS
# ==========================================

class RegisterRequest(RequestSchema):
    username: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=1)
    email: Optional[str] = Field(default=None, max_length=120)


class LoginRequest(RequestSchema):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ==========================================
# PARKING
# ==========================================

class ParkingLocationRequest(RequestSchema):
    latitude: str
    longitude: str
    location_name: Optional[str] = Field(default=None, alias='locationName', max_length=255)
    notes: Optional[str] = None

    @field_validator('latitude', mode='before')
    @classmethod
    def check_latitude(cls, value):
        return _coordinate(value, 'latitude', 90)

    @field_validator('longitude', mode='before')
    @classmethod
    def check_longitude(cls, value):
        return _coordinate(value, 'longitude', 180)


class HistoryQuery(RequestSchema):
    limit: int = Field(default=10, ge=1, le=100)


# JSON numbers only: no booleans, numeric strings or floats
class TimerRequest(RequestSchema):
    parking_location_id: int = Field(alias='parkingLocationId', strict=True)
    duration_minutes: int = Field(alias='durationMinutes', gt=0, strict=True)


# ==========================================
# PAYMENTS
# ==========================================

class PaymentIntentRequest(RequestSchema):
    # Amount in cents, as sent by the client
    amount: int = Field(gt=0, strict=True)
    description: Optional[str] = None


class ConfirmSubscriptionRequest(RequestSchema):
    payment_intent_id: str = Field(alias='paymentIntentId', min_length=1)


def parse(schema, data):
    """Validates `data` against `schema`, raising ValidationError on failure."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        errors = [
            {
                'field': '.'.join(str(part) for part in err['loc']),
                'message': err['msg'],
            }
            for err in e.errors()
        ]
        raise ValidationError("Validation Error: invalid request", payload={'errors': errors})
