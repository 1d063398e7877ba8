"""
Database

One shared `databases` connection pool for the accounts service. It is
opened by the app lifespan (or a script) and used by the repositories.
"""
from databases import Database
from khe.modules.config import DATABASE_URL

database = Database(DATABASE_URL)


async def connect_to_db():
    if not database.is_connected:
        await database.connect()


async def disconnect_from_db():
    if database.is_connected:
        await database.disconnect()
