"""
User Validation

Field rules for account payloads. Each function returns a list of
human-readable messages; an empty list means the payload is valid.
"""
from typing import List, Optional
from email_validator import validate_email, EmailNotValidError
from khe.modules.users.domain.user import ROLES

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    """Canonical stored form of an address; lookups and uniqueness use it."""
    return email.strip().lower()


def check_email(email: Optional[str]) -> List[str]:
    if not email or not email.strip():
        return ["An email is required"]
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return ["That email is not valid"]
    return []


def check_password(password: Optional[str]) -> List[str]:
    if not password:
        return ["A password is required"]
    if len(password) < MIN_PASSWORD_LENGTH:
        return [f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters"]
    return []


def check_role(role: Optional[str]) -> List[str]:
    if role not in ROLES:
        return [f"Role must be one of: {', '.join(ROLES)}"]
    return []


def validate(data: dict) -> List[str]:
    """Validate a registration payload; email and password are both required."""
    return check_email(data.get("email")) + check_password(data.get("password"))


def validate_update(data: dict) -> List[str]:
    """
    Validate a partial update. Only fields that are present are checked;
    an absent or null field means "leave unchanged".
    """
    errors = []
    if data.get("email") is not None:
        errors += check_email(data["email"])
    if data.get("password") is not None:
        errors += check_password(data["password"])
    if data.get("role") is not None:
        errors += check_role(data["role"])
    return errors
