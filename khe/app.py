import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from khe.modules import config
from khe.modules.database import database, connect_to_db, disconnect_from_db
from khe.modules.errors import register_error_handlers
from khe.modules.migration_runner import run_migrations
from khe.modules.users.api import user_router

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_to_db()
    await run_migrations(database)
    yield
    # Shutdown
    await disconnect_from_db()

app = FastAPI(title="KHE Accounts", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(user_router)

@app.get("/")
async def root():
    return {"status": "online", "system": "KHE Accounts"}
