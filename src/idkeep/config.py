"""
Configuration for idkeep.
Module constants are fixed system values; the helpers at the bottom read
the few settings that may be overridden from the environment.
"""

import os
from pathlib import Path

# Database constants
DB_SCHEMA_VERSION = 1
DEFAULT_DB_FILENAME = "identities.db"

# Identity fields
MUTABLE_IDENTITY_FIELDS = frozenset(["private_key", "revocation_certificate"])
IMMUTABLE_IDENTITY_FIELDS = frozenset(
    ["fingerprint", "public_key", "name", "email", "created_at"]
)

# Private key cache defaults
KEY_CACHE_TTL_SECONDS = 15 * 60
KEY_CACHE_MAX_ENTRIES = 32

# Time constants
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

# Logging
LOGGER_NAME = "idkeep"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Environment overrides
ENV_DB_PATH = "IDKEEP_DB_PATH"
ENV_LOG_LEVEL = "IDKEEP_LOG_LEVEL"


def default_db_path() -> str:
    """
    Resolve the database path.

    Returns:
        Value of IDKEEP_DB_PATH, or ~/.idkeep/identities.db
    """
    override = os.environ.get(ENV_DB_PATH)
    if override:
        return override
    return str(Path.home() / ".idkeep" / DEFAULT_DB_FILENAME)


def log_level() -> str:
    """Log level name from IDKEEP_LOG_LEVEL (default INFO)."""
    return os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
