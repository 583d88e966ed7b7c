"""
Database engine and sessions (SQLAlchemy)

The engine is built lazily from Settings.DATABASE_URL, so importing the
application never touches the database. Sessions are opened per request
or job by the store opener and closed by it.
"""
import psycopg
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from paytracker.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for the users / bills tables"""
    pass


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _connect_args(url: str) -> dict:
    # the reminder job runs on the scheduler thread
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = get_settings().get_sqlalchemy_url()
        _engine = create_engine(url, pool_pre_ping=True, connect_args=_connect_args(url))
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _session_factory


def open_session() -> Session:
    """New session bound to the application engine; the caller closes it"""
    return get_session_factory()()


def check_db_connection() -> None:
    """
    Readiness probe: one round trip to PostgreSQL over raw psycopg

    Raises:
        psycopg.OperationalError: database unreachable
    """
    with psycopg.connect(get_settings().DATABASE_URL, connect_timeout=3) as conn:
        conn.execute("SELECT 1")
