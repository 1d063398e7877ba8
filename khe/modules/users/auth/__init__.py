"""
Authentication and Authorization

Provides:
- FastAPI dependencies resolving the current user from key/token credentials
- Role-based access control
"""

from .middleware import get_current_user, require_roles, require_admin, require_admin_or_staff

__all__ = [
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_admin_or_staff",
]
