"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from ledgerflow.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "LEDGERFLOW_DB_PATH"
DB_URL_ENV = "LEDGERFLOW_DATABASE_URL"


def default_database_path() -> Path:
    """Return ~/.ledgerflow/ledgerflow.db, creating the directory."""
    db_dir = Path.home() / ".ledgerflow"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "ledgerflow.db"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGERFLOW_DB_PATH
            environment variable, then defaults to ~/.ledgerflow/ledgerflow.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV) or str(default_database_path())

    logger.debug("Using SQLite database at %s", database_path)
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_database(database_url: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a database instance for any SQLAlchemy URL.

    Args:
        database_url: SQLAlchemy URL. If None, checks LEDGERFLOW_DATABASE_URL,
            then falls back to the SQLite file from create_sqlite_database()

    Returns:
        SQLAlchemyDatabase instance
    """
    if database_url is None:
        database_url = os.environ.get(DB_URL_ENV)
    if not database_url:
        return create_sqlite_database()
    return SQLAlchemyDatabase(database_url)
