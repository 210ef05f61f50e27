"""
Migration environment for the authormity schema.
The database URL comes from authormity's settings (DATABASE_URL / .env),
normalised the same way as the application engine.
"""
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from authormity.db.base import Base
from authormity.db.session import SQLALCHEMY_DATABASE_URL
import authormity.models  # noqa: F401

config = context.config
target_metadata = Base.metadata

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# main.run_migrations() passes the URL explicitly; the CLI falls back to settings
database_url = config.get_main_option("sqlalchemy.url") or SQLALCHEMY_DATABASE_URL


def run_migrations_offline() -> None:
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
