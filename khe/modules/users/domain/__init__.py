"""
Domain Models

Pure data models and validation rules for user accounts.
"""

from .user import User, ROLES, ROLE_ADMIN, ROLE_STAFF, ROLE_ATTENDEE
from .validation import normalize_email, validate, validate_update

__all__ = [
    "User",
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_STAFF",
    "ROLE_ATTENDEE",
    "normalize_email",
    "validate",
    "validate_update",
]
