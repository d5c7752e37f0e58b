from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from ens_indexer.app.config import settings
from ens_indexer.app.infrastructure.db.db_base import ENS_SCHEMA, BaseDB
from ens_indexer.app.infrastructure.db.models.domain import (  # noqa: F401
    contracts,
    owners,
    tokens,
    transfers,
)

config = context.config
config.set_main_option("sqlalchemy.url", settings.sync_database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseDB.metadata


def include_name(name, type_, parent_names):
    if type_ == "schema":
        return name == ENS_SCHEMA
    return True


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        include_schemas=True,
        include_name=include_name,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=True,
            include_name=include_name,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
