"""
Shared fixtures: an in-memory user repository standing in for the database,
a fresh token cache per test, and a TestClient wired to both.
"""
import base64
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from khe.app import app
from khe.modules.token_cache import TokenCache
from khe.modules.users.auth.middleware import get_user_service
from khe.modules.users.domain import passwords
from khe.modules.users.repositories.user_repository import UserRepository, DuplicateEmailError
from khe.modules.users.services.user_service import UserService


class InMemoryUserRepository:
    """Dict-backed repository with the same async interface as UserRepository."""

    UPDATABLE_FIELDS = UserRepository.UPDATABLE_FIELDS

    def __init__(self):
        self.rows: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        return any(row["email"] == email and row["id"] != exclude_id for row in self.rows.values())

    async def create(self, email, password, salt, role, token, created) -> Dict[str, Any]:
        if self._email_taken(email):
            raise DuplicateEmailError()
        row = {
            "id": self._next_id,
            "email": email,
            "password": password,
            "salt": salt,
            "role": role,
            "token": token,
            "created": created,
        }
        self.rows[row["id"]] = row
        self._next_id += 1
        return dict(row)

    async def get_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        row = self.rows.get(user_id)
        return dict(row) if row else None

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for row in self.rows.values():
            if row["email"] == email:
                return dict(row)
        return None

    async def update(self, user_id: int, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = self.rows.get(user_id)
        if not row:
            return None
        if "email" in updates and self._email_taken(updates["email"], exclude_id=user_id):
            raise DuplicateEmailError()
        for field in self.UPDATABLE_FIELDS:
            if field in updates:
                row[field] = updates[field]
        return dict(row)

    async def delete(self, user_id: int) -> bool:
        return self.rows.pop(user_id, None) is not None

    async def list(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in sorted(self.rows.values(), key=lambda r: (r["created"], r["id"]))]

    def insert(self, email: str, password: str, role: str = "attendee", token: Optional[str] = "seed-token") -> Dict[str, Any]:
        """Synchronous seeding helper for tests."""
        salt = passwords.salt()
        row = {
            "id": self._next_id,
            "email": email,
            "password": passwords.hash(password, salt),
            "salt": salt,
            "role": role,
            "token": token,
            "created": datetime(2014, 1, 1) + timedelta(minutes=self._next_id),
        }
        self.rows[row["id"]] = row
        self._next_id += 1
        return dict(row)


def basic_auth(key: Any, token: str) -> Dict[str, str]:
    encoded = base64.b64encode(f"{key}:{token}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {encoded}"}


@pytest.fixture
def repository():
    """Empty in-memory repository."""
    return InMemoryUserRepository()


@pytest.fixture
def token_cache():
    return TokenCache()


@pytest.fixture
def user_service(repository, token_cache):
    return UserService(repository=repository, cache=token_cache)


@pytest.fixture
def client(user_service):
    """TestClient whose endpoints all share the in-memory user_service."""
    app.dependency_overrides[get_user_service] = lambda: user_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(repository):
    row = repository.insert("admin@khe.io", "admin-password", role="admin", token="admin-token")
    return {"row": row, "headers": basic_auth(row["id"], row["token"])}


@pytest.fixture
def staff(repository):
    row = repository.insert("staff@khe.io", "staff-password", role="staff", token="staff-token")
    return {"row": row, "headers": basic_auth(row["id"], row["token"])}


@pytest.fixture
def attendee(repository):
    row = repository.insert("hacker@khe.io", "hacker-password", role="attendee", token="hacker-token")
    return {"row": row, "headers": basic_auth(row["id"], row["token"])}
