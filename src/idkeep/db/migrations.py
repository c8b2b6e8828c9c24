"""
Schema initialisation and version checks.
"""

from typing import Optional

from ..config import DB_SCHEMA_VERSION
from ..errors import DatabaseError, SchemaError
from ..logger import get_logger
from .connection import DatabaseConnection
from .schema import REQUIRED_TABLES, get_initial_version_insert, get_schema_statements

logger = get_logger(__name__)


def _table_exists(db: DatabaseConnection, table_name: str) -> bool:
    row = db.fetch_one(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table_name,)
    )
    return row is not None


def get_current_version(db: DatabaseConnection) -> Optional[int]:
    """
    Current schema version, or None for an uninitialised database.
    """
    if not _table_exists(db, 'schema_version'):
        return None
    row = db.fetch_one("SELECT MAX(version) AS version FROM schema_version")
    if row is None:
        return None
    return row['version']


def initialize_schema(db: DatabaseConnection):
    """
    Create the schema on a fresh database; accept one already at this version.

    Raises:
        SchemaError: If the stored version differs or creation fails
    """
    current_version = get_current_version(db)

    if current_version == DB_SCHEMA_VERSION:
        return
    if current_version is not None:
        direction = "newer" if current_version > DB_SCHEMA_VERSION else "older"
        raise SchemaError(
            f"Database schema version {current_version} is {direction} than "
            f"supported version {DB_SCHEMA_VERSION}"
        )

    try:
        with db.transaction():
            for statement in get_schema_statements():
                db.execute(statement)
            sql, params = get_initial_version_insert()
            db.execute(sql, params)
    except DatabaseError as e:
        raise SchemaError(f"Failed to initialize schema: {e}")

    logger.info("Initialized schema version %d", DB_SCHEMA_VERSION)


def verify_schema(db: DatabaseConnection) -> bool:
    """True when the version matches and every required table exists."""
    try:
        if get_current_version(db) != DB_SCHEMA_VERSION:
            return False
        return all(_table_exists(db, table) for table in REQUIRED_TABLES)
    except DatabaseError:
        return False
