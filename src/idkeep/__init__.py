"""
idkeep - OpenPGP identity keeper

Stores the key pairs a user logs in to applications with, proves imported
public/private keys belong together, and resolves which stored identity an
application login should use.

Main exports:
- IdentityManager: Main entry point
- CredentialImporter: Import / update workflow
- KeyPairVerifier: Encrypt-decrypt proof for key pairs
- IdentityResolver: Login resolution state machine
- Result: Tagged verify/import outcome
"""

from .buffers import Buffer, InMemoryBuffers
from .manager import IdentityManager
from .identity import (
    CredentialImporter,
    Identity,
    IdentityStore,
    ImportSession,
    KeyPairVerifier,
    SessionHandle,
    is_public_key_read_only,
)
from .login import Ambiguous, Found, IdentityResolver, NotFound, Searching, TrustedFingerprints
from .logger import configure_logging
from .result import Result
from .errors import *

__version__ = "0.1.0"

__all__ = [
    'IdentityManager',
    'Buffer',
    'InMemoryBuffers',
    'CredentialImporter',
    'Identity',
    'IdentityStore',
    'ImportSession',
    'KeyPairVerifier',
    'SessionHandle',
    'is_public_key_read_only',
    'IdentityResolver',
    'TrustedFingerprints',
    'Searching',
    'NotFound',
    'Found',
    'Ambiguous',
    'Result',
    'configure_logging',
]
