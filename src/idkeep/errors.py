"""
Domain-specific exceptions for idkeep.
All exceptions are explicit and carry meaningful context.
"""

from typing import Any, Optional

from .buffers import Buffer


class IdkeepError(Exception):
    """Base exception for all idkeep errors."""
    pass


# ==================== Import / verification ====================


class CredentialError(IdkeepError):
    """
    Base exception for failures reported by the verifier and importer.

    Attributes:
        kind: Stable tag naming the failure
        buffer: Editor buffer the user should look at, if any
    """

    kind = "CredentialError"
    buffer: Optional[Buffer] = None


class MissingPublicKeyError(CredentialError):
    """Raised when no public key text was supplied."""

    kind = "MissingPublicKey"
    buffer = Buffer.PUBLIC_KEY

    def __init__(self):
        super().__init__("Public key is missing")


class MissingPrivateKeyError(CredentialError):
    """Raised by the key-pair check when no private key text was supplied."""

    kind = "MissingPrivateKey"
    buffer = Buffer.PRIVATE_KEY

    def __init__(self):
        super().__init__("Private key is missing")


class ParseFailureError(CredentialError):
    """Raised when armored key text cannot be parsed."""

    kind = "ParseFailure"

    def __init__(self, which: Buffer, detail: str):
        self.which = which
        self.buffer = which
        self.detail = detail
        label = "Public" if which is Buffer.PUBLIC_KEY else "Private"
        super().__init__(f"{label} key could not be parsed: {detail}")


class KeyPairMismatchError(CredentialError):
    """Raised when the private key cannot decrypt what the public key encrypted."""

    kind = "KeyPairMismatch"
    buffer = Buffer.PRIVATE_KEY

    def __init__(self):
        super().__init__("Public and private key do not form a pair")


class PassphraseError(CredentialError):
    """Raised when a protected private key cannot be unlocked."""

    kind = "Passphrase"
    buffer = Buffer.PRIVATE_KEY


class AlreadyExistsError(CredentialError):
    """
    Raised when creating an identity whose fingerprint is already stored.
    Recoverable: the caller should switch to editing `identity`.
    """

    kind = "AlreadyExists"
    buffer = Buffer.PUBLIC_KEY

    def __init__(self, fingerprint: str, identity: Any = None):
        self.fingerprint = fingerprint
        self.identity = identity
        super().__init__(f"Identity {fingerprint} already exists")


class PublicKeyChangedError(CredentialError):
    """Raised when an update submits a public key for a different fingerprint."""

    kind = "PublicKeyChanged"
    buffer = Buffer.PUBLIC_KEY

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Public key fingerprint {actual} does not match identity {expected}"
        )


class IdentityNotFoundError(CredentialError):
    """Raised when the identity being edited no longer exists."""

    kind = "IdentityNotFound"

    def __init__(self, fingerprint: str):
        self.fingerprint = fingerprint
        super().__init__(f"Identity {fingerprint} not found")


class StoreFailureError(CredentialError):
    """Raised when the credential store fails during an import."""

    kind = "StoreFailure"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Credential store {operation} failed: {detail}")


class ImportPendingError(CredentialError):
    """Raised when a second import is submitted while one is in flight."""

    kind = "ImportPending"

    def __init__(self):
        super().__init__("An import is already in progress")


class SessionClosedError(CredentialError):
    """Raised when submitting through an import session that was closed."""

    kind = "SessionClosed"

    def __init__(self):
        super().__init__("The import session is closed")


# ==================== Key service ====================


class KeyServiceError(IdkeepError):
    """Base exception for cryptographic key service failures."""
    pass


class KeyParseError(KeyServiceError):
    """Raised when armored key material cannot be parsed."""
    pass


class KeyDecryptError(KeyServiceError):
    """Raised when a message cannot be decrypted with the given key."""
    pass


# ==================== Storage ====================


class DatabaseError(IdkeepError):
    """Base exception for database-related errors."""
    pass


class SchemaError(DatabaseError):
    """Raised when database schema operations fail."""
    pass


class IdentityStoreError(IdkeepError):
    """Base exception for identity store errors."""
    pass


class IdentityAlreadyExistsError(IdentityStoreError):
    """Raised when inserting a duplicate fingerprint."""
    pass


class ImmutableFieldError(IdentityStoreError):
    """Raised when writing a field that may not change after creation."""
    pass


class InvariantViolationError(IdkeepError):
    """Raised when a core identity invariant is violated."""
    pass
