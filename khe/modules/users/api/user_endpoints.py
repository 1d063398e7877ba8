"""
User Management API Endpoints

REST API endpoints for registration, tokens and user administration.
Handlers are thin: they unpack the request, call UserService and shape the
JSON response. Errors propagate as ApiError and are rendered by the
handlers in khe.modules.errors.
"""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel
from typing import Optional
from khe.modules import config
from khe.modules.mailer import send_registration_email
from khe.modules.users.domain.user import User
from khe.modules.users.services.user_service import UserService
from khe.modules.users.auth.middleware import (
    get_current_user,
    get_user_service,
    require_admin,
    require_admin_or_staff,
)

logger = logging.getLogger("khe.users.api")

router = APIRouter(prefix="/users", tags=["users"])


# Request Models
# Fields are optional here so missing values reach the validation rules and
# come back in the multi-error envelope.
class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateSelfRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateUserRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


@router.post("")
async def register(
    request: RegisterRequest,
    background_tasks: BackgroundTasks,
    service: UserService = Depends(get_user_service)
):
    """
    Create a new user.

    Returns the new user's key and token. In production a registration email
    is sent after the response.
    """
    logger.debug(f"[user_endpoints.register] email={request.email}")

    user = await service.register(request.model_dump())

    if config.is_production():
        background_tasks.add_task(send_registration_email, user.email)

    return user.to_credentials_dict()


@router.post("/token")
async def issue_token(
    request: TokenRequest,
    service: UserService = Depends(get_user_service)
):
    """Get a key and token for an email/password pair."""
    user = await service.issue_token(request.email, request.password)
    return user.to_credentials_dict()


@router.delete("/token")
async def revoke_token(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Delete the caller's token."""
    await service.revoke_token(current_user)
    return {}


@router.get("")
async def list_users(
    current_user: User = Depends(require_admin_or_staff),
    service: UserService = Depends(get_user_service)
):
    """Get a list of all users. Admin and staff only."""
    users = await service.list_users()
    return {
        "users": [user.to_public_dict() for user in users]
    }


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(require_admin_or_staff),
    service: UserService = Depends(get_user_service)
):
    """Get a user by ID. Admin and staff only."""
    user = await service.get_user(user_id)
    return user.to_public_dict()


@router.put("")
async def update_self(
    request: UpdateSelfRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Update the logged in user's email and/or password."""
    user = await service.update_self(current_user, request.model_dump())
    return {
        "email": user.email
    }


@router.post("/{user_id}")
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """Update a user by ID. Admin only."""
    logger.debug(f"[user_endpoints.update_user] user_id={user_id}, by={current_user.id}")
    user = await service.update_by_id(user_id, request.model_dump())
    return user.to_public_dict()


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """Delete a user by ID. Admin only."""
    logger.debug(f"[user_endpoints.delete_user] user_id={user_id}, by={current_user.id}")
    await service.delete_by_id(user_id)
    return {}
