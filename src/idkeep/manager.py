"""
idkeep public API.

IdentityManager wires the key service, private key cache, credential store,
importer and resolver together over one SQLite database.
"""

from typing import Any, Dict, List, Optional

from .buffers import EditorBuffers
from .config import default_db_path
from .db.connection import DatabaseConnection
from .db.migrations import initialize_schema, verify_schema
from .errors import DatabaseError, IdentityNotFoundError, InvariantViolationError, KeyServiceError
from .identity import CredentialImporter, IdentityStore, KeyPairVerifier, SessionHandle
from .invariants import validate_identity_binding, validate_unique_fingerprints
from .keys import OpenPGPKeyService, PrivateKeyCache
from .keys.cache import PassphraseProvider
from .logger import get_logger
from .login import AppFingerprintLookup, IdentityResolver
from .result import Result

logger = get_logger(__name__)


class IdentityManager:
    """
    Main entry point for importing credentials and resolving logins.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        passphrase_provider: Optional[PassphraseProvider] = None,
    ):
        """
        Args:
            db_path: SQLite database path (defaults to config.default_db_path())
            passphrase_provider: Supplies passphrases for protected private keys
        """
        self.db = DatabaseConnection(db_path or default_db_path())
        self.db.connect()
        initialize_schema(self.db)

        self.key_service = OpenPGPKeyService()
        self.key_cache = PrivateKeyCache(self.key_service, passphrase_provider)
        self.store = IdentityStore(self.db)
        self.verifier = KeyPairVerifier(self.key_service, self.key_cache)
        self.importer = CredentialImporter(self.key_service, self.verifier, self.store)

    def close(self):
        """Drop cached keys and close the database."""
        self.key_cache.clear()
        self.db.close()

    # ==================== Import ====================

    def open_import(self, buffers: Optional[EditorBuffers] = None) -> SessionHandle:
        """Start a session for importing a new identity."""
        handle = SessionHandle(buffers=buffers)
        handle.open_new()
        return handle

    async def open_edit(
        self,
        fingerprint: str,
        buffers: Optional[EditorBuffers] = None,
    ) -> SessionHandle:
        """
        Start a session editing a stored identity.

        Raises:
            IdentityNotFoundError: If the fingerprint is unknown
        """
        handle = SessionHandle(buffers=buffers)
        await self.importer.edit(handle, fingerprint)
        return handle

    async def import_or_update(self, handle: SessionHandle, **texts: Optional[str]) -> Result:
        """See CredentialImporter.import_or_update."""
        return await self.importer.import_or_update(handle, **texts)

    async def check_key_pair(self, handle: SessionHandle) -> Result:
        return await self.importer.check_key_pair(handle)

    async def verify(self, public_key_text: str, private_key_text: str) -> Result:
        return await self.verifier.verify(public_key_text, private_key_text)

    # ==================== Identities ====================

    async def get_identity(self, fingerprint: str) -> Dict[str, Any]:
        """
        Raises:
            IdentityNotFoundError: If the fingerprint is unknown
        """
        identity = await self.store.find_by_fingerprint(fingerprint)
        if identity is None:
            raise IdentityNotFoundError(fingerprint)
        return identity.to_dict()

    async def list_identities(self) -> List[Dict[str, Any]]:
        return [i.to_dict() for i in await self.store.list_all()]

    # ==================== Login ====================

    def resolver(self, app_lookup: AppFingerprintLookup) -> IdentityResolver:
        """Resolver for one login attempt; call resolve() on it."""
        return IdentityResolver(self.store, app_lookup)

    # ==================== Utilities ====================

    async def health_check(self) -> Dict[str, Any]:
        """
        Check the schema and the fingerprint binding of every identity.
        """
        try:
            schema_valid = verify_schema(self.db)
            identities = await self.store.list_all()
            validate_unique_fingerprints(identities)
            for identity in identities:
                await validate_identity_binding(identity, self.key_service)
        except (DatabaseError, InvariantViolationError, KeyServiceError) as e:
            logger.error("Health check failed: %s", e)
            return {
                'status': 'error',
                'error': str(e),
            }

        return {
            'status': 'healthy' if schema_valid else 'unhealthy',
            'schema_valid': schema_valid,
            'identities': len(identities),
            'private_keys': sum(1 for i in identities if i.has_private_key),
            'cached_keys': len(self.key_cache),
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
