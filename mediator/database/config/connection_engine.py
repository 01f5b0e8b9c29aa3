"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- Uses `URL.create(...)` so credentials stay environment-driven.
- SQLite (local runs and tests) is opened with `check_same_thread=False`
  because request handlers run on worker threads.
- All ORM models must inherit from `declarativeBase`.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from mediator.database.config.config import settings

connection_url = URL.create(
    drivername=settings.DB_DRIVER_NAME,
    username=settings.DB_USERNAME,
    password=settings.DB_PASSWORD,
    host=settings.DB_HOST,
    port=settings.DB_PORT,
    database=settings.DB_DATABASE_NAME,
)
"""Constructs the SQLAlchemy connection URL using values from Settings."""

connect_args = {"check_same_thread": False} if settings.DB_DRIVER_NAME.startswith("sqlite") else {}

connection_engine = create_engine(connection_url, connect_args=connect_args, pool_pre_ping=True)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

metadata = MetaData()
"""Stores schema-level information about tables, constraints, indexes, etc. Shared across all models."""

declarativeBase = declarative_base(metadata=metadata)
"""Root class for ORM models."""


def create_tables() -> None:
    """Create every table registered on `metadata` that does not exist yet."""
    # entity modules register themselves on import
    import mediator.database.entities  # noqa: F401

    metadata.create_all(connection_engine)
