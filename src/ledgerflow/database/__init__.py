"""Database layer for ledgerflow application.

Services talk to the abstract ``Database``; ``SQLAlchemyDatabase`` is the
only implementation and is built by the factories.
"""

from ledgerflow.database.base import Database
from ledgerflow.database.factories import create_database, create_sqlite_database
from ledgerflow.database.sqlalchemy_db import SQLAlchemyDatabase

__all__ = ["Database", "SQLAlchemyDatabase", "create_database", "create_sqlite_database"]
