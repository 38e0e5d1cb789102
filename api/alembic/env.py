from __future__ import annotations

import logging
import sys
import time
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import Connection, create_engine, text

# Ensure parent directory (api/) is in Python path for module imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Import models so they register with Base.metadata
import models  # noqa: F401
from alembic import context
from core.config import get_settings
from core.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Use SQLAlchemy model metadata for autogenerate
target_metadata = Base.metadata

# Advisory lock key derived from app name hash for uniqueness
_ADVISORY_LOCK_KEY = 518204671  # hash("ecotrack-migrations") % (2**31)

# Lock acquisition timeout (seconds) - prevents indefinite blocking
_LOCK_TIMEOUT_SECONDS = 120

# Async driver -> synchronous driver used for migrations
_SYNC_DRIVERS = {
    "+asyncpg": "+psycopg2",
    "+aiosqlite": "",
}


def _get_sync_database_url() -> str:
    """Get a synchronous database URL for migrations.

    Uses psycopg2 (synchronous driver) instead of asyncpg to avoid
    event loop conflicts.
    """
    url = get_settings().database_url
    for async_driver, sync_driver in _SYNC_DRIVERS.items():
        if async_driver in url:
            url = url.replace(async_driver, sync_driver)
    return url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = _get_sync_database_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def _acquire_advisory_lock(connection: Connection) -> None:
    """Serialize migrations across workers (PostgreSQL only)."""
    logger = logging.getLogger("alembic")

    # pg_try_advisory_lock returns immediately, we poll with timeout
    start_time = time.time()
    while time.time() - start_time < _LOCK_TIMEOUT_SECONDS:
        result = connection.execute(
            text("SELECT pg_try_advisory_lock(:key)"),
            {"key": _ADVISORY_LOCK_KEY},
        )
        acquired = result.scalar()
        result.close()
        if acquired:
            # Commit the lock acquisition so Alembic starts clean
            connection.commit()
            logger.info("Acquired migration advisory lock")
            return
        logger.debug("Waiting for migration lock...")
        time.sleep(2)

    raise RuntimeError(
        f"Failed to acquire migration lock within {_LOCK_TIMEOUT_SECONDS}s. "
        "Another process may be stuck holding the lock."
    )


def _run_migrations(connection: Connection) -> None:
    logger = logging.getLogger("alembic")
    is_postgres = getattr(connection.dialect, "name", "") == "postgresql"

    if is_postgres:
        _acquire_advisory_lock(connection)

    try:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()
    finally:
        if is_postgres:
            try:
                result = connection.execute(
                    text("SELECT pg_advisory_unlock(:key)"),
                    {"key": _ADVISORY_LOCK_KEY},
                )
                result.close()
                logger.info("Released migration advisory lock")
            except Exception as unlock_error:
                # Lock is released when the session ends anyway
                logger.warning("advisory.lock.release.failed: %s", unlock_error)


def run_migrations_online() -> None:
    """Run migrations using a synchronous connection."""
    engine = create_engine(_get_sync_database_url())

    with engine.connect() as connection:
        _run_migrations(connection)


def run() -> None:
    if context.is_offline_mode():
        run_migrations_offline()
    else:
        run_migrations_online()


run()
