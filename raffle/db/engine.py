from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .utils import configured_database_url

load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = configured_database_url(ROOT_DIR)


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite otherwise issues its own BEGIN and breaks SAVEPOINT nesting.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    url = database_url or DEFAULT_SQLITE_URL
    engine = create_engine(
        url,
        echo=echo,
        future=True,
    )
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep raffle state readable after commit
        future=True,
    )
