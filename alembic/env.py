import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from movie_reviews.db.base import Base  # registers every model on Base.metadata
from movie_reviews.core.config import settings

# ───────────────────────────────────────────────
# 📦 Alembic Config
# ───────────────────────────────────────────────
config = context.config

# TEST_DATABASE_URL wins when migrating a throwaway test database.
DATABASE_URL = os.getenv("TEST_DATABASE_URL") or settings.ASYNC_DATABASE_URL

if config.config_ini_section:
    config.set_main_option("sqlalchemy.url", DATABASE_URL)

if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


# ───────────────────────────────────────────────
# 📴 Offline Migrations (generates SQL script)
# ───────────────────────────────────────────────
def run_migrations_offline() -> None:
    """Run Alembic migrations without connecting to the database."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


# ───────────────────────────────────────────────
# 🌐 Online Migrations (live DB migrations)
# ───────────────────────────────────────────────
def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run Alembic migrations with an async SQLAlchemy engine."""
    connectable = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
