"""
User Service

Business logic for registration, token issuance and user administration.
Every failure is raised as an ApiError so the API layer stays thin.
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any
from khe.modules.errors import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationFailed,
)
from khe.modules.token_cache import TokenCache, token_cache as default_token_cache
from khe.modules.users.domain import passwords
from khe.modules.users.domain.user import User, ROLE_ATTENDEE
from khe.modules.users.domain.validation import normalize_email, validate, validate_update
from khe.modules.users.repositories.user_repository import UserRepository, DuplicateEmailError

logger = logging.getLogger("khe.users.service")

BAD_CREDENTIALS = "Email or password incorrect"


class UserService:
    """Service for user business logic."""

    def __init__(
        self,
        repository: Optional[UserRepository] = None,
        cache: Optional[TokenCache] = None
    ):
        self.repository = repository or UserRepository()
        self.cache = cache if cache is not None else default_token_cache

    async def register(self, data: Dict[str, Any]) -> User:
        """Create a new account and issue its first token."""
        errors = validate(data)
        if errors:
            raise ValidationFailed(errors)

        email = normalize_email(data["email"])
        logger.debug(f"[UserService.register] email={email}")

        if await self.repository.get_by_email(email):
            raise ConflictError("That email is already in use")

        salt = passwords.salt()
        try:
            row = await self.repository.create(
                email=email,
                password=passwords.hash(data["password"], salt),
                salt=salt,
                role=ROLE_ATTENDEE,
                token=passwords.token(),
                created=datetime.utcnow(),
            )
        except DuplicateEmailError:
            raise ConflictError("That email is already in use")

        user = User.from_dict(row)
        logger.info(f"[UserService.register] Created user {user.id}")
        return user

    async def issue_token(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Exchange email/password for the user's key and token. An existing
        token is handed back as-is; a revoked one is replaced.
        """
        logger.debug(f"[UserService.issue_token] email={email}")

        row = await self.repository.get_by_email(normalize_email(email)) if email else None
        if not row:
            raise AuthenticationError(BAD_CREDENTIALS)

        user = User.from_dict(row)
        if not passwords.check_password(user.password, password, user.salt):
            raise AuthenticationError(BAD_CREDENTIALS)

        if user.token:
            return user

        row = await self.repository.update(user.id, {"token": passwords.token()})
        if not row:
            raise InternalError()
        user = User.from_dict(row)
        self.cache.cache(user)
        logger.info(f"[UserService.issue_token] Issued new token for user {user.id}")
        return user

    async def revoke_token(self, current_user: User):
        """Null the caller's token so it can no longer authenticate."""
        logger.debug(f"[UserService.revoke_token] user_id={current_user.id}")

        row = await self.repository.get_by_id(current_user.id)
        if not row:
            raise InternalError()
        user = User.from_dict(row)

        if not await self.repository.update(user.id, {"token": None}):
            raise InternalError()
        self.cache.uncache(user, token=user.token or current_user.token)
        logger.info(f"[UserService.revoke_token] Revoked token for user {user.id}")

    async def authenticate(self, key: Any, token: str) -> Optional[User]:
        """Resolve key/token credentials to a user, or None if they do not match."""
        cached = self.cache.get(token)
        if cached and str(cached.id) == str(key):
            return cached

        try:
            user_id = int(key)
        except (TypeError, ValueError):
            return None

        row = await self.repository.get_by_id(user_id)
        if not row:
            return None
        user = User.from_dict(row)
        if not passwords.tokens_match(user.token, token):
            return None

        self.cache.cache(user)
        return user

    async def list_users(self) -> List[User]:
        logger.debug("[UserService.list_users]")
        rows = await self.repository.list()
        return [User.from_dict(row) for row in rows]

    async def get_user(self, user_id: int) -> User:
        logger.debug(f"[UserService.get_user] user_id={user_id}")
        row = await self.repository.get_by_id(user_id)
        if not row:
            raise NotFoundError("User not found")
        return User.from_dict(row)

    async def update_self(self, current_user: User, data: Dict[str, Any]) -> User:
        """Change the caller's own email and/or password."""
        changes = {k: data.get(k) for k in ("email", "password") if data.get(k) is not None}
        logger.debug(f"[UserService.update_self] user_id={current_user.id}, fields={list(changes.keys())}")

        errors = validate_update(changes)
        if errors:
            raise ValidationFailed(errors)

        row = await self._apply_updates(current_user.id, changes, "That email is already taken")
        if not row:
            raise InternalError()
        return self._refresh_cache(User.from_dict(row))

    async def update_by_id(self, user_id: int, data: Dict[str, Any]) -> User:
        """Administrative update of email, password and/or role."""
        changes = {k: data.get(k) for k in ("email", "password", "role") if data.get(k) is not None}
        logger.debug(f"[UserService.update_by_id] user_id={user_id}, fields={list(changes.keys())}")

        errors = validate_update(changes)
        if errors:
            raise ValidationFailed(errors)

        if not await self.repository.get_by_id(user_id):
            raise NotFoundError("User not found")

        row = await self._apply_updates(user_id, changes, "That email is already taken")
        if not row:
            raise NotFoundError("User not found")

        user = User.from_dict(row)
        logger.info(f"[UserService.update_by_id] Updated user {user.id}: {list(changes.keys())}")
        return self._refresh_cache(user)

    async def delete_by_id(self, user_id: int):
        logger.debug(f"[UserService.delete_by_id] user_id={user_id}")

        row = await self.repository.get_by_id(user_id)
        if not row:
            raise NotFoundError("User not found")

        if not await self.repository.delete(user_id):
            raise NotFoundError("User not found")
        self.cache.uncache(User.from_dict(row))
        logger.info(f"[UserService.delete_by_id] Deleted user {user_id}")

    async def _apply_updates(
        self,
        user_id: int,
        changes: Dict[str, Any],
        conflict_message: str
    ) -> Optional[Dict[str, Any]]:
        updates = dict(changes)
        if "email" in updates:
            updates["email"] = normalize_email(updates["email"])
            existing = await self.repository.get_by_email(updates["email"])
            if existing and existing["id"] != user_id:
                raise ConflictError(conflict_message)
        if "password" in updates:
            salt = passwords.salt()
            updates["salt"] = salt
            updates["password"] = passwords.hash(updates["password"], salt)

        try:
            return await self.repository.update(user_id, updates)
        except DuplicateEmailError:
            raise ConflictError(conflict_message)

    def _refresh_cache(self, user: User) -> User:
        """Replace any cached snapshot of `user` with the current one."""
        self.cache.uncache(user)
        self.cache.cache(user)
        return user
