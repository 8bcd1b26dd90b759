# coffeediary_backend/app/db/session.py

# [DB Session] Engine + helpers
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from coffeediary_backend.app.config.paths import ensure_data_dir_exists


def _enable_sqlite_fks(dbapi_connection, connection_record) -> None:
    # cascade deletes need the pragma on every sqlite connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_url: str) -> Engine:
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        # Ensure /data exists (needed for sqlite file URLs)
        ensure_data_dir_exists()
    # SQLite needs check_same_thread=False for typical FastAPI usage
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(db_url, echo=False, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_fks)
    return engine


def init_db(engine: Engine) -> None:
    # Ensure table definitions are registered before create_all
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(engine)


def session_scope(engine: Engine) -> Session:
    return Session(engine, expire_on_commit=False)
