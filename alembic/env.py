from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv

from raffle.db.engine import ROOT_DIR, make_engine
from raffle.db.utils import configured_database_url
from raffle.models import Base  # noqa: F401 - import populates metadata

load_dotenv(ROOT_DIR / ".env")

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
DATABASE_URL = configured_database_url(ROOT_DIR)

# Percent signs need to be escaped due to ConfigParser interpolation rules.
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))

COMPARE_OPTS = {"compare_type": True, "compare_server_default": True}


def run_migrations_offline() -> None:
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = make_engine(database_url=DATABASE_URL)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
            **COMPARE_OPTS,
        )
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
