"""Key material handling for idkeep."""

from .service import OpenPGPKeyService, UnlockedKey, UserIdentity
from .cache import PrivateKeyCache

__all__ = [
    'OpenPGPKeyService',
    'UnlockedKey',
    'UserIdentity',
    'PrivateKeyCache',
]
