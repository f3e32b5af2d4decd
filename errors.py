"""
Error taxonomy shared by every component.

Components raise these; the API layer maps them to status codes. Anything
else that escapes a request is reported as a generic server fault.
"""

from enum import Enum
from typing import Optional


class DenialReason(str, Enum):
    DEAL_NOT_FOUND = "deal_not_found"
    NOT_VERIFIED = "not_verified"
    ALREADY_CLAIMED = "already_claimed"
    EXPIRED = "expired"
    CAPACITY_REACHED = "capacity_reached"
    DUPLICATE_CLAIM = "duplicate_claim"


class DealsError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        self.message = message or self.default_message
        self.reason = reason
        super().__init__(self.message)


class ValidationError(DealsError):
    status_code = 400
    default_message = "Validation error"


class Conflict(DealsError):
    status_code = 409
    default_message = "Conflict"


class NotFound(DealsError):
    status_code = 404
    default_message = "Not found"


class NotAuthenticated(DealsError):
    status_code = 401
    default_message = "Not authenticated"


class NotAuthorized(DealsError):
    status_code = 403
    default_message = "Not allowed"


class BusinessRuleViolation(DealsError):
    status_code = 400
    default_message = "Request not allowed by business rules"


class InternalFault(DealsError):
    status_code = 500


class InvalidToken(ValidationError):
    default_message = "Invalid or expired verification token"


class InvalidCredentials(NotAuthenticated):
    default_message = "Invalid email or password"


_DENIALS = {
    DenialReason.DEAL_NOT_FOUND: (NotFound, "Deal not found"),
    DenialReason.NOT_VERIFIED: (NotAuthorized, "This deal requires verified email"),
    DenialReason.ALREADY_CLAIMED: (BusinessRuleViolation, "You have already claimed this deal"),
    DenialReason.EXPIRED: (BusinessRuleViolation, "This deal has expired"),
    DenialReason.CAPACITY_REACHED: (BusinessRuleViolation, "This deal has reached its claim limit"),
    DenialReason.DUPLICATE_CLAIM: (Conflict, "You have already claimed this deal"),
}


def denial_error(reason: DenialReason) -> DealsError:
    error_cls, message = _DENIALS[reason]
    return error_cls(message, reason=reason.value)
