from __future__ import annotations

import logging
import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from raffle.config import RaffleSettings
from raffle.db.engine import get_sessionmaker, make_engine
from raffle.workflows import ensure_raffle, raffle_summary

logger = logging.getLogger("raffle.scripts.init_db")


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def main() -> None:
    """Migrate the schema and make sure the configured raffle exists."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    upgrade_db()

    engine = make_engine()
    tables = ", ".join(sorted(inspect(engine).get_table_names()))
    logger.info(f"Current tables: {tables}")

    settings = RaffleSettings.from_env()
    Session = get_sessionmaker(engine)
    with Session.begin() as session:
        raffle = ensure_raffle(session, settings)
        logger.info(f"Raffle ready: {raffle_summary(session, raffle)}")
    engine.dispose()


if __name__ == "__main__":
    main()
