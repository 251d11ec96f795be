from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from activityhub.config import DATABASE_URL


def _sqlite_connect(dbapi_connection, connection_record) -> None:
    """
    Take over transaction control from pysqlite and turn on FK enforcement.

    pysqlite delays BEGIN until the first write and ignores FOR UPDATE, so
    two joins could both read the same counter. See ``_sqlite_begin``.
    """
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_begin(conn) -> None:
    # IMMEDIATE takes the database write lock up front (waits on busy timeout).
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str) -> Engine:
    """
    Create the SQLAlchemy engine for ``url``.

    - future=True: 2.0 style
    - SQLite (local dev, tests): connections are shared with FastAPI's
      threadpool and every transaction is serialized with BEGIN IMMEDIATE.
      Read-only requests queue too (each waits up to the 30 s busy timeout),
      so SQLite suits development and tests; production runs on Postgres,
      where only join/leave take a row lock.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, future=True, pool_pre_ping=True)

    engine = create_engine(
        url,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    event.listen(engine, "connect", _sqlite_connect)
    event.listen(engine, "begin", _sqlite_begin)
    return engine


engine: Engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    DB session dependency for FastAPI routes.

    @router.get("/items")
    def list_items(db: Session = Depends(get_db)):
        ...
    """
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
