"""Login identity resolution for idkeep."""

from .resolver import (
    AppFingerprintLookup,
    TrustedFingerprints,
    Searching,
    NotFound,
    Found,
    Ambiguous,
    LoginState,
    IdentityResolver,
    settle,
    pick_one,
    choose,
)

__all__ = [
    'AppFingerprintLookup',
    'TrustedFingerprints',
    'Searching',
    'NotFound',
    'Found',
    'Ambiguous',
    'LoginState',
    'IdentityResolver',
    'settle',
    'pick_one',
    'choose',
]
