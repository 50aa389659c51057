from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

# Applied on every new SQLite connection
SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA journal_mode=WAL",
)

# SQLite is used from FastAPI's threadpool; writers wait on the lock
engine = create_engine(
    settings.resolved_database_url,
    connect_args={"check_same_thread": False, "timeout": 30},
)


@event.listens_for(engine, "connect")
def apply_sqlite_pragmas(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    for pragma in SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    from .models.generated import Base
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope():
    """Session for scripts: commit on success, roll back on error."""
    db: Session = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# FastAPI dependency: one session per request, services own the commits
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
