from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_and_session(
    database_url: str,
    *,
    echo: bool = False,
    expire_on_commit: bool = True,
    autoflush: bool = False,
    **engine_kwargs: Any,
) -> tuple[Engine, sessionmaker[Session]]:
    engine = create_engine(database_url, echo=echo, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    session_factory = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=autoflush,
        expire_on_commit=expire_on_commit,
    )
    return engine, session_factory


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    global _engine, _session_factory
    if _session_factory is None:
        settings = get_settings()
        _engine, _session_factory = create_engine_and_session(settings.RPT_DATABASE_URL, echo=settings.SQL_ECHO)
    return _session_factory
