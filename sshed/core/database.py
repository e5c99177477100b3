from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sshed.core.config import get_settings
from typing import Optional
import logging
import os

settings = get_settings()
logger = logging.getLogger(__name__)


def build_engine(url: str, timeout: Optional[float] = None, **kwargs) -> Engine:
    """Creates an engine with a bounded wait on locked databases.

    Why: A stalled store call would otherwise block a whole reconciliation
    pass. For SQLite the driver-level ``timeout`` is the busy timeout, so a
    locked database turns into an ``OperationalError`` for that one call.

    Args:
        url: SQLAlchemy database URL.
        timeout: Seconds to wait on a lock. Defaults to STORE_TIMEOUT_SECONDS.
        **kwargs: Passed through to ``create_engine``.

    Returns:
        The configured engine.
    """
    if timeout is None:
        timeout = settings.STORE_TIMEOUT_SECONDS
    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", timeout)
    new_engine = create_engine(url, connect_args=connect_args, **kwargs)
    if url.startswith("sqlite"):
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(target: Optional[Engine] = None):
    target = target or engine
    # Ensure database directory exists
    if str(target.url).startswith("sqlite:///"):
        db_path = target.url.database
        if db_path and db_path != ":memory:":
            db_dir = os.path.dirname(os.path.abspath(db_path))
            try:
                os.makedirs(db_dir, exist_ok=True)
            except OSError as e:
                logger.error(f"Could not create database directory {db_dir}: {e}")

    # Import models here to ensure they are registered with SQLModel metadata
    from sshed.models import Host, Tag, Group, Tagged, Groupped  # noqa: F401
    SQLModel.metadata.create_all(target)


def get_session() -> Session:
    return Session(engine)
