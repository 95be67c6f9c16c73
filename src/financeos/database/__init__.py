"""Database layer for financeos."""

from financeos.database.base import Database
from financeos.database.factories import create_sqlite_database
from financeos.database.sqlalchemy_db import SQLAlchemyDatabase

__all__ = ["Database", "SQLAlchemyDatabase", "create_sqlite_database"]
