"""
Error taxonomy for the ParkPal API.

Every error carries the HTTP status it maps to; the app factory registers one
handler that turns them into `{"message": ...}` JSON responses.
"""


class ParkPalError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, payload=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.payload = payload

    def to_dict(self):
        body = {'message': self.message}
        if self.payload:
            body.update(self.payload)
        return body


class ValidationError(ParkPalError):
    status_code = 400
    default_message = "Validation Error"


class AuthenticationError(ParkPalError):
    # Rendered as a bare 401 with no body
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(ParkPalError):
    status_code = 403
    default_message = "Not authorized"


class NotFoundError(ParkPalError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ParkPalError):
    status_code = 409
    default_message = "Conflict"


class PremiumRequiredError(ParkPalError):
    status_code = 403
    default_message = "Premium feature. Please upgrade to access parking history."


class PaymentIncompleteError(ParkPalError):
    status_code = 400
    default_message = "Payment has not been completed"


class UpstreamProviderError(ParkPalError):
    status_code = 500
    default_message = "Payment provider error"
