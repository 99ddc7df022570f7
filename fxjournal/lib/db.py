"""SQLite storage for journal trades, import logs and shared config documents."""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()

# FXJOURNAL_DB_PATH takes precedence
DEFAULT_DB_PATH = Path.home() / ".fxjournal" / "data.db"

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker[Session]] = None


def _enable_foreign_keys(dbapi_conn: Any, connection_record: Any) -> None:
    # Import issues cascade with their audit log
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _resolve_db_path(db_path: Optional[Path]) -> Path:
    if db_path is not None:
        return db_path
    env_db_path = os.environ.get("FXJOURNAL_DB_PATH")
    return Path(env_db_path) if env_db_path else DEFAULT_DB_PATH


def _register_models() -> None:
    from fxjournal.models import (  # noqa: F401
        ConfigDocument,
        ImportAuditLog,
        ImportIssueRecord,
        Trade,
    )


def get_engine(db_path: Optional[Path] = None) -> Engine:
    """Return the shared engine, creating it (and the data directory) on first use.

    db_path only matters for the first call; later calls reuse the engine
    until reset_engine().
    """
    global _engine

    if _engine is None:
        path = _resolve_db_path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Sessions are used from the CLI thread only, but tests share one engine
        _engine = create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})
        event.listen(_engine, "connect", _enable_foreign_keys)

    return _engine


def reset_engine() -> None:
    """Dispose the shared engine so the next session reconnects (tests switch databases)."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()
        _engine = None
    _SessionLocal = None


def get_session() -> Session:
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal()


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """One unit of work: commit when the block finishes, roll back if it raises.

    Example:
        >>> with db_session() as session:
        ...     session.add(ConfigDocument(key="vip-showcase", data={}))
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_path: Optional[Path] = None) -> None:
    """Create any missing tables; existing data is kept."""
    engine = get_engine(db_path)
    _register_models()
    Base.metadata.create_all(bind=engine)


def reset_db(db_path: Optional[Path] = None) -> None:
    """Drop and recreate every table. All trades and import logs are lost."""
    engine = get_engine(db_path)
    _register_models()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def db_exists(db_path: Optional[Path] = None) -> bool:
    return _resolve_db_path(db_path).exists()
