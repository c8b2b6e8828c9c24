"""
Identity storage and retrieval.
Stores armored key material and identity metadata in SQLite, one row per
fingerprint.
"""

import sqlite3
from typing import Any, Dict, List, Optional

from ..config import IMMUTABLE_IDENTITY_FIELDS, MUTABLE_IDENTITY_FIELDS
from ..db.connection import DatabaseConnection
from ..errors import IdentityAlreadyExistsError, IdentityStoreError, ImmutableFieldError
from ..logger import get_logger
from ..utils.time import now

logger = get_logger(__name__)


def _optional(text: Optional[str]) -> Optional[str]:
    return text if text else None


class Identity:
    """
    A stored credential, keyed by fingerprint.
    """

    def __init__(
        self,
        fingerprint: str,
        public_key: str,
        private_key: Optional[str] = None,
        revocation_certificate: Optional[str] = None,
        name: str = "",
        email: str = "",
        created_at: Optional[str] = None,
    ):
        self.fingerprint = fingerprint
        self.public_key = public_key
        self.private_key = _optional(private_key)
        self.revocation_certificate = _optional(revocation_certificate)
        self.name = name
        self.email = email
        self.created_at = created_at

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Identity':
        return cls(
            fingerprint=row['fingerprint'],
            public_key=row['public_key'],
            private_key=row['private_key'],
            revocation_certificate=row['revocation_certificate'],
            name=row['name'] or "",
            email=row['email'] or "",
            created_at=row['created_at'],
        )

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert identity to dictionary."""
        return {
            'fingerprint': self.fingerprint,
            'public_key': self.public_key,
            'private_key': self.private_key,
            'revocation_certificate': self.revocation_certificate,
            'name': self.name,
            'email': self.email,
            'created_at': self.created_at,
        }

    def __repr__(self) -> str:
        return f"Identity(fingerprint={self.fingerprint!r}, name={self.name!r})"


class IdentityStore:
    """
    Credential store over the identities table.
    Methods are coroutines so callers can swap in a remote store.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db

    async def find_by_fingerprint(self, fingerprint: str) -> Optional[Identity]:
        """
        Look up an identity.

        Returns:
            Identity or None when the fingerprint is unknown
        """
        row = self.db.fetch_one(
            "SELECT * FROM identities WHERE fingerprint = ?",
            (fingerprint,)
        )
        return Identity.from_row(row) if row else None

    async def insert(self, identity: Identity) -> Identity:
        """
        Persist a new identity. created_at is assigned here.

        Raises:
            IdentityAlreadyExistsError: If the fingerprint is already stored
            DatabaseError: If the write fails
        """
        identity.created_at = now()
        try:
            with self.db.transaction():
                self.db.execute(
                    """
                    INSERT INTO identities (
                        fingerprint, public_key, private_key,
                        revocation_certificate, name, email, created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        identity.fingerprint,
                        identity.public_key,
                        identity.private_key,
                        identity.revocation_certificate,
                        identity.name,
                        identity.email,
                        identity.created_at,
                    )
                )
        except sqlite3.IntegrityError as e:
            raise IdentityAlreadyExistsError(
                f"Identity {identity.fingerprint} already exists: {e}"
            )

        logger.info("Stored identity %s", identity.fingerprint)
        return identity

    async def set_field(self, fingerprint: str, field: str, value: Optional[str]) -> bool:
        """
        Write one mutable field, only if its stored value differs.

        Args:
            fingerprint: Identity to update
            field: private_key or revocation_certificate
            value: New text; empty text clears the field

        Returns:
            True if a row changed

        Raises:
            ImmutableFieldError: If the field may not change after creation
        """
        if field in IMMUTABLE_IDENTITY_FIELDS:
            raise ImmutableFieldError(f"Field {field} cannot be changed")
        if field not in MUTABLE_IDENTITY_FIELDS:
            raise IdentityStoreError(f"Unknown identity field: {field}")

        value = _optional(value)
        # Field name comes from the whitelist above, never from input.
        with self.db.transaction():
            cursor = self.db.execute(
                f"UPDATE identities SET {field} = ? "
                f"WHERE fingerprint = ? AND {field} IS NOT ?",
                (value, fingerprint, value)
            )
        changed = cursor.rowcount > 0
        if changed:
            logger.info("Updated %s of identity %s", field, fingerprint)
        return changed

    async def update_fields(self, fingerprint: str, changes: Dict[str, Optional[str]]) -> List[str]:
        """
        Write several mutable fields in one transaction.
        Nothing is kept if any write fails.

        Returns:
            Names of the fields that changed
        """
        changed = []
        with self.db.transaction():
            for field, value in changes.items():
                if await self.set_field(fingerprint, field, value):
                    changed.append(field)
        return changed

    async def list_all(self) -> list[Identity]:
        """All identities in creation order."""
        rows = self.db.fetch_all("SELECT * FROM identities ORDER BY created_at, rowid")
        return [Identity.from_row(row) for row in rows]

    async def count(self) -> int:
        row = self.db.fetch_one("SELECT COUNT(*) AS count FROM identities")
        return row['count'] if row else 0
