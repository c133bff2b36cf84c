"""
Alembic migration environment configuration.

This file is run whenever the alembic migration tool is invoked.
It sets up the database connection and provides migration context.
"""

import os
import sys
from pathlib import Path
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# Make the repository root importable so that backend.src resolves
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../../../../")))

# Alembic Config object (access to the .ini file values)
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from backend.src.models import Base  # noqa: E402

target_metadata = Base.metadata

# Override sqlalchemy.url with environment variable if set
if os.environ.get("LIGHTCHURCH_DB_URL"):
    config.set_main_option("sqlalchemy.url", os.environ["LIGHTCHURCH_DB_URL"])


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Configures the context with just a URL, so no DBAPI is needed;
    context.execute() emits SQL to the script output.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,  # No pooling for migrations
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
