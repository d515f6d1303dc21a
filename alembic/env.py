from logging.config import fileConfig

from alembic import context

import logging
import os
import sys

# this is the Alembic Config object, which provides access to the values
# within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Make sure the project root is on sys.path so `import userdir` works when
# alembic is invoked from a checkout without an installed package.
here = os.path.dirname(__file__)
project_root = os.path.abspath(os.path.join(here, ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

env_logger = logging.getLogger("alembic.env")

# The application's engine already resolves DB_URL / DB_* / sqlite fallback
# from settings, so migrations hit the same database the service uses.
from sqlmodel import SQLModel

from userdir.services import database as _database
from userdir.models import user as _user_model  # noqa: F401  registers the users table

engine = _database.engine
target_metadata = SQLModel.metadata
env_logger.info("Tables in SQLModel.metadata: %s", list(target_metadata.tables.keys()))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url") or str(engine.url)
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
