"""
User Domain Model

Pure data model representing a user account.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ROLE_ATTENDEE = "attendee"
ROLE_STAFF = "staff"
ROLE_ADMIN = "admin"

ROLES = (ROLE_ATTENDEE, ROLE_STAFF, ROLE_ADMIN)


@dataclass
class User:
    """User domain model. `password` always holds the hash, never plaintext."""
    id: int
    email: str
    password: str
    salt: str
    role: str
    token: Optional[str]
    created: datetime

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create User from dictionary (e.g., from database row)."""
        return cls(
            id=data["id"],
            email=data["email"],
            password=data["password"],
            salt=data["salt"],
            role=data.get("role") or ROLE_ATTENDEE,
            token=data.get("token"),
            created=data.get("created") or datetime.utcnow(),
        )

    def has_role(self, *roles: str) -> bool:
        return not roles or self.role in roles

    def to_public_dict(self) -> dict:
        """Fields that may leave the service. Never includes password, salt or token."""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "created": self.created.isoformat() if self.created else None,
        }

    def to_credentials_dict(self) -> dict:
        """Key/token pair handed out on registration and login."""
        return {
            "key": self.id,
            "token": self.token,
        }
