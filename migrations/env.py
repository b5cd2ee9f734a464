# migrations/env.py

import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

import sys
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from socdash.core.config import settings
from socdash.db.database import Base
from socdash.db import models  # noqa: F401  registers every table on Base.metadata

from asyncio import run as asyncio_run


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The application setting wins over whatever alembic.ini carries
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

target_metadata = Base.metadata


def run_migrations_offline():
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


def _configure_and_run(sync_conn):
    context.configure(
        connection=sync_conn,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=settings.is_sqlite,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations against the configured async engine."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async def run_async_migrations():
        async with connectable.connect() as conn:
            await conn.run_sync(_configure_and_run)
        await connectable.dispose()

    asyncio_run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
