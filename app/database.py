"""
Database engine and session configuration.

Engines are created explicitly by their owner (the summary store) instead of
at import time, so tests and scripts can point at their own database.
"""
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    File-backed SQLite databases get their parent directory created and are
    switched to WAL journaling so readers are not blocked by the daily write.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log SQL statements

    Returns:
        Configured engine
    """
    # Configure connection pooling for production databases
    pool_config = {}
    if database_url.startswith(("postgresql", "mysql")):
        pool_config = {
            'pool_size': 10,              # Number of connections to maintain
            'max_overflow': 20,            # Maximum number of connections beyond pool_size
            'pool_pre_ping': True,         # Verify connections before using them
            'pool_recycle': 3600,          # Recycle connections after 1 hour
        }
    elif database_url.startswith("sqlite"):
        # SQLite doesn't benefit from pooling but needs thread safety
        pool_config = {
            'connect_args': {"check_same_thread": False}
        }
        db_file = database_url[len("sqlite:///"):]
        if db_file in ("", ":memory:"):
            # One shared connection, otherwise every thread sees its own empty database
            pool_config['poolclass'] = StaticPool
        else:
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=echo, **pool_config)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
