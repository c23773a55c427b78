"""
core/db.py -- SQLAlchemy engine construction shared by auth/ and pricing/.

Both stores take a database URL and build their own engine through
make_engine(), so the SQLite connection tweaks live in one place.

Layer rule: core/ is the kernel. No imports from api/, auth/, or pricing/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_url(db_url: str) -> bool:
    return ":memory:" in db_url or "mode=memory" in db_url


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url.

    SQLite connections are shared across FastAPI's worker threads, so
    check_same_thread is disabled. File-backed SQLite also gets WAL mode.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite") and not _is_memory_url(db_url):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
