"""
Data Access Layer (Repositories)

Repositories handle all database interactions.
"""

from .user_repository import UserRepository, DuplicateEmailError

__all__ = [
    "UserRepository",
    "DuplicateEmailError",
]
