"""
Migration Runner

Applies the forward-only .sql files in khe/migrations in name order and
records each one in schema_migrations, so a restart only runs new files.
"""
import os
import logging
from datetime import datetime
from typing import List, Set
from databases import Database

logger = logging.getLogger("khe.migrations")

MIGRATION_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")

TRACKING_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    filename VARCHAR(255) PRIMARY KEY,
    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


def pending_files(migration_dir: str, applied: Set[str]) -> List[str]:
    return sorted(f for f in os.listdir(migration_dir) if f.endswith(".sql") and f not in applied)


def split_statements(sql: str) -> List[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]


async def get_applied_migrations(database: Database) -> Set[str]:
    rows = await database.fetch_all("SELECT filename FROM schema_migrations")
    return {row["filename"] for row in rows}


async def run_migrations(database: Database, migration_dir: str = MIGRATION_DIR) -> List[str]:
    """
    Apply every migration not yet recorded. Each file runs in its own
    transaction together with its schema_migrations row.

    Returns:
        Filenames applied by this call
    """
    if not database.is_connected:
        await database.connect()

    await database.execute(TRACKING_TABLE)
    files = pending_files(migration_dir, await get_applied_migrations(database))

    if not files:
        logger.info("Schema is up to date.")
        return []

    for filename in files:
        logger.info(f"Applying migration: {filename}")
        with open(os.path.join(migration_dir, filename), "r") as f:
            statements = split_statements(f.read())

        async with database.transaction():
            for stmt in statements:
                await database.execute(stmt)
            await database.execute(
                "INSERT INTO schema_migrations (filename, applied_at) VALUES (:filename, :applied_at)",
                {"filename": filename, "applied_at": datetime.utcnow()},
            )

    logger.info(f"Applied {len(files)} migration(s).")
    return files
