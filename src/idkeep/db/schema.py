"""
Database schema for the credential store.
Schema changes are versioned; see migrations.py.
"""

from ..config import DB_SCHEMA_VERSION


SCHEMA_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL,
    description TEXT NOT NULL
)
"""

# One row per key fingerprint. private_key and revocation_certificate are
# the only columns written after insert.
IDENTITIES_TABLE = """
CREATE TABLE IF NOT EXISTS identities (
    fingerprint TEXT PRIMARY KEY,
    public_key TEXT NOT NULL,
    private_key TEXT,
    revocation_certificate TEXT,
    name TEXT,
    email TEXT,
    created_at TEXT NOT NULL,
    CHECK(length(fingerprint) > 0),
    CHECK(length(public_key) > 0)
)
"""

IDENTITIES_INDEX_CREATED = """
CREATE INDEX IF NOT EXISTS idx_identities_created
ON identities(created_at)
"""

REQUIRED_TABLES = ('schema_version', 'identities')


def get_schema_statements() -> list[str]:
    """Schema creation statements, in order."""
    return [
        SCHEMA_VERSION_TABLE,
        IDENTITIES_TABLE,
        IDENTITIES_INDEX_CREATED,
    ]


def get_initial_version_insert() -> tuple[str, tuple]:
    """
    Statement recording the current schema version.

    Returns:
        Tuple of (SQL statement, parameters)
    """
    from ..utils.time import now

    sql = """
    INSERT INTO schema_version (version, applied_at, description)
    VALUES (?, ?, ?)
    """
    return sql, (DB_SCHEMA_VERSION, now(), "Identity credentials")
