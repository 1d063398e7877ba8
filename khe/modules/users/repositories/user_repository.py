"""
User Repository

Handles all database operations for the users table.
"""
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime
from databases import Database
from khe.modules.database import database as default_database
from khe.modules.errors import ConflictError

logger = logging.getLogger("khe.users.repository")

USER_COLUMNS = "id, email, password, salt, role, token, created"

# users.id is SERIAL (int4); larger ids cannot be encoded, so they match nothing
MAX_USER_ID = 2**31 - 1


def is_valid_id(user_id: int) -> bool:
    return 1 <= user_id <= MAX_USER_ID


class DuplicateEmailError(ConflictError):
    """Raised when an insert or update collides with the unique email column."""
    default_message = "That email is already in use"


class UserRepository:
    """Repository for user data access."""

    # Columns that update() is allowed to write
    UPDATABLE_FIELDS = ("email", "password", "salt", "role", "token")

    def __init__(self, database: Optional[Database] = None):
        self.database = database or default_database

    async def create(
        self,
        email: str,
        password: str,
        salt: str,
        role: str,
        token: Optional[str],
        created: datetime
    ) -> Dict[str, Any]:
        """Insert a new user and return the stored row."""
        query = f"""
            INSERT INTO users (email, password, salt, role, token, created)
            VALUES (:email, :password, :salt, :role, :token, :created)
            RETURNING {USER_COLUMNS}
        """
        values = {
            "email": email,
            "password": password,
            "salt": salt,
            "role": role,
            "token": token,
            "created": created,
        }
        try:
            row = await self.database.fetch_one(query, values)
        except Exception:
            await self._raise_if_duplicate(email)
            raise
        return dict(row)

    async def get_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        if not is_valid_id(user_id):
            return None
        query = f"SELECT {USER_COLUMNS} FROM users WHERE id = :user_id"
        row = await self.database.fetch_one(query, {"user_id": user_id})
        if not row:
            return None
        return dict(row)

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        query = f"SELECT {USER_COLUMNS} FROM users WHERE email = :email"
        row = await self.database.fetch_one(query, {"email": email})
        if not row:
            return None
        return dict(row)

    async def update(
        self,
        user_id: int,
        updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Write the given fields and return the stored row, or None if the
        user does not exist. Unknown fields are ignored.
        """
        if not is_valid_id(user_id):
            return None

        set_clauses = []
        values = {"user_id": user_id}

        for field in self.UPDATABLE_FIELDS:
            if field in updates:
                set_clauses.append(f"{field} = :{field}")
                values[field] = updates[field]

        if not set_clauses:
            return await self.get_by_id(user_id)

        query = f"""
            UPDATE users SET {', '.join(set_clauses)}
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        try:
            row = await self.database.fetch_one(query, values)
        except Exception:
            if "email" in updates:
                await self._raise_if_duplicate(updates["email"], exclude_id=user_id)
            raise
        if not row:
            return None
        return dict(row)

    async def delete(self, user_id: int) -> bool:
        """Hard delete. Returns False when no row matched."""
        if not is_valid_id(user_id):
            return False
        query = "DELETE FROM users WHERE id = :user_id RETURNING id"
        deleted_id = await self.database.fetch_val(query, {"user_id": user_id})
        return deleted_id is not None

    async def list(self) -> List[Dict[str, Any]]:
        query = f"SELECT {USER_COLUMNS} FROM users ORDER BY created ASC, id ASC"
        rows = await self.database.fetch_all(query)
        return [dict(row) for row in rows]

    async def _raise_if_duplicate(self, email: str, exclude_id: Optional[int] = None):
        """Translate a failed write into DuplicateEmailError when the email is taken."""
        existing = await self.get_by_email(email)
        if existing and existing["id"] != exclude_id:
            logger.debug(f"[UserRepository] duplicate email rejected: {email}")
            raise DuplicateEmailError()
