"""Engine creation for the durable geocoding cache.

The cache lives in a single SQLite file.  SQLite access is fast and local,
so the engine is synchronous: cache reads and writes never suspend the
event loop's resolution flow.
"""

from pathlib import Path

from sqlalchemy import Engine, create_engine, event

from reseller_map.models import Base

CACHE_DB_FILENAME = "geo-cache.db"


def create_cache_engine(cache_dir: str, **kwargs: object) -> Engine:
    """Create the cache directory, open the SQLite file, and ensure the schema exists.

    Args:
        cache_dir: Directory that holds ``geo-cache.db``.
        **kwargs: Additional arguments passed to create_engine.

    Returns:
        The created engine.
    """
    path = Path(cache_dir)
    path.mkdir(parents=True, exist_ok=True)

    connect_args = kwargs.pop("connect_args", {})
    if not isinstance(connect_args, dict):
        msg = "connect_args must be a dict"
        raise TypeError(msg)
    connect_args.setdefault("check_same_thread", False)

    engine = create_engine(f"sqlite:///{path / CACHE_DB_FILENAME}", connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _record) -> None:  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine
