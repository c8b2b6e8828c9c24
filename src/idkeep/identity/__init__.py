"""Identity storage, key-pair verification and credential import."""

from .identity_store import Identity, IdentityStore
from .session import (
    ImportSession,
    SessionHandle,
    apply,
    is_public_key_read_only,
    is_read_only,
)
from .verifier import KeyPairVerifier
from .importer import CredentialImporter

__all__ = [
    'Identity',
    'IdentityStore',
    'ImportSession',
    'SessionHandle',
    'apply',
    'is_public_key_read_only',
    'is_read_only',
    'KeyPairVerifier',
    'CredentialImporter',
]
