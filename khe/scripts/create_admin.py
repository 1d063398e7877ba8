"""
Create an admin account, or promote an existing one.

An existing account is promoted and its password is reset to the one given.

Run with: python -m khe.scripts.create_admin <email> <password>
"""
import argparse
import asyncio
import logging
from khe.modules.database import database, connect_to_db, disconnect_from_db
from khe.modules.migration_runner import run_migrations
from khe.modules.users.domain.user import ROLE_ADMIN
from khe.modules.users.domain.validation import normalize_email
from khe.modules.users.repositories.user_repository import UserRepository
from khe.modules.users.services.user_service import UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def create_admin(service: UserService, email: str, password: str):
    """
    Register `email` if needed, then give it the admin role. An existing
    account also gets `password` as its new password.
    """
    existing = await service.repository.get_by_email(normalize_email(email))
    if existing:
        user_id = existing["id"]
        logger.info(f"User {email} already exists (id={user_id}), promoting to admin and resetting password")
        changes = {"role": ROLE_ADMIN, "password": password}
    else:
        user = await service.register({"email": email, "password": password})
        user_id = user.id
        logger.info(f"Registered {email} (id={user_id})")
        changes = {"role": ROLE_ADMIN}

    user = await service.update_by_id(user_id, changes)
    logger.info(f"{user.email} is now {user.role}")
    return user


async def main(email: str, password: str):
    await connect_to_db()
    try:
        await run_migrations(database)
        await create_admin(UserService(UserRepository(database)), email, password)
    finally:
        await disconnect_from_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin account, or promote an existing one and reset its password")
    parser.add_argument("email")
    parser.add_argument("password", help="password for the new account, or the replacement password for an existing one")
    args = parser.parse_args()
    asyncio.run(main(args.email, args.password))
