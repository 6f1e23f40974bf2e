import importlib
import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings
from app.database.base import Base


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000

_MODEL_MODULES = (
    "app.models.prediction",
    "app.models.product",
    "app.models.sales",
)


def _is_sqlite_memory(url) -> bool:
    sqlite_db = url.database
    if sqlite_db in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def build_engine(database_url: str):
    db_url = make_url(database_url)
    is_sqlite = db_url.get_backend_name() == "sqlite"
    is_memory = is_sqlite and _is_sqlite_memory(db_url)

    connect_args = {}
    engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
    if is_sqlite:
        connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
        if is_memory:
            engine_kwargs.update(poolclass=StaticPool)

    new_engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
                if not is_memory:
                    try:
                        cursor.execute("PRAGMA journal_mode=WAL")
                        cursor.execute("PRAGMA synchronous=NORMAL")
                    except sqlite3.DatabaseError:
                        logger.warning("SQLite WAL mode unavailable; using default journal.")
            finally:
                cursor.close()

    return new_engine


engine = build_engine(app_settings.DATABASE_URL)


def import_all_models() -> None:
    for module_name in _MODEL_MODULES:
        importlib.import_module(module_name)


def create_tables(bind=None) -> None:
    import_all_models()
    Base.metadata.create_all(bind=bind or engine)


__all__ = ["build_engine", "create_tables", "engine", "import_all_models"]
