"""
Token Cache

Process-local map of auth token -> user snapshot, so authenticated requests
can skip the database. Entries are written on login and removed on logout,
update and delete.
"""
import logging
from typing import Dict, Optional
from khe.modules.users.domain.user import User

logger = logging.getLogger("khe.token_cache")


class TokenCache:
    """Caches users by their current token."""

    def __init__(self):
        self._entries: Dict[str, User] = {}

    def cache(self, user: User):
        if not user.token:
            return
        self._entries[user.token] = user
        logger.debug(f"Cached token for user {user.id}")

    def uncache(self, user: User, token: Optional[str] = None):
        """
        Drop the cached entry for `token` (defaults to the user's current
        token) plus anything else still cached for the same user id.
        """
        stale = [t for t, cached in self._entries.items() if cached.id == user.id]
        if token or user.token:
            stale.append(token or user.token)
        for t in stale:
            self._entries.pop(t, None)
        logger.debug(f"Uncached {len(set(stale))} token(s) for user {user.id}")

    def get(self, token: str) -> Optional[User]:
        return self._entries.get(token)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


# Singleton instance
token_cache = TokenCache()
