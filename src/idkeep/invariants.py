"""
Runtime identity invariant validation.
These checks guard the properties the importer must never break.
"""

from typing import TYPE_CHECKING, Iterable

from .errors import InvariantViolationError

if TYPE_CHECKING:
    from .identity.identity_store import Identity


async def validate_identity_binding(identity: "Identity", key_service):
    """
    Validate that the stored fingerprint is the fingerprint of the stored
    public key.

    Raises:
        InvariantViolationError: If the binding is broken
    """
    public_key = await key_service.parse_public_key(identity.public_key)
    expected = key_service.fingerprint(public_key)
    if identity.fingerprint != expected:
        raise InvariantViolationError(
            f"Identity {identity.fingerprint} not bound to its public key. "
            f"Expected {expected}"
        )


def validate_public_key_unchanged(before: "Identity", after: "Identity"):
    """
    Validate that an update left the public key and fingerprint alone.

    Raises:
        InvariantViolationError: If either changed
    """
    if before.fingerprint != after.fingerprint:
        raise InvariantViolationError(
            f"Fingerprint changed from {before.fingerprint} to {after.fingerprint}"
        )
    if before.public_key != after.public_key:
        raise InvariantViolationError(
            f"Public key of identity {before.fingerprint} was rewritten"
        )


def validate_unique_fingerprints(identities: Iterable["Identity"]):
    """
    Validate that no fingerprint appears twice.

    Raises:
        InvariantViolationError: On the first duplicate
    """
    seen = set()
    for identity in identities:
        if identity.fingerprint in seen:
            raise InvariantViolationError(
                f"Duplicate identity for fingerprint {identity.fingerprint}"
            )
        seen.add(identity.fingerprint)
