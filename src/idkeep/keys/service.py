"""
OpenPGP key service backed by pgpy.
Parses armored key material, derives fingerprints and user ids, and
encrypts/decrypts short messages. Key text is passed through unchanged.
"""

from dataclasses import dataclass
from typing import Optional, Union

import pgpy
from pgpy.errors import PGPDecryptionError, PGPEncryptionError, PGPError

from ..errors import KeyDecryptError, KeyParseError, KeyServiceError


@dataclass(frozen=True)
class UserIdentity:
    """Name and email taken from a key's primary user id."""

    name: str
    email: str


@dataclass(frozen=True)
class UnlockedKey:
    """
    A private key ready for decryption.
    Protected keys carry the passphrase that unlocks them.
    """

    fingerprint: str
    key: pgpy.PGPKey
    passphrase: Optional[str] = None


def _load(text: str) -> pgpy.PGPKey:
    if not text or not text.strip():
        raise KeyParseError("Key text is empty")
    try:
        key, _ = pgpy.PGPKey.from_blob(text)
    except Exception as e:
        raise KeyParseError(str(e) or e.__class__.__name__)
    return key


class OpenPGPKeyService:
    """
    Cryptographic key operations on armored OpenPGP text.
    """

    async def parse_public_key(self, text: str) -> pgpy.PGPKey:
        """
        Parse an armored public key.

        Raises:
            KeyParseError: If the text is not a public key
        """
        key = _load(text)
        if not key.is_public:
            raise KeyParseError("Expected a public key, found a private key")
        return key

    async def parse_private_key(self, text: str) -> pgpy.PGPKey:
        """
        Parse an armored private key.

        Raises:
            KeyParseError: If the text is not a private key
        """
        key = _load(text)
        if key.is_public:
            raise KeyParseError("Expected a private key, found a public key")
        return key

    def fingerprint(self, key: pgpy.PGPKey) -> str:
        """Uppercase hex fingerprint without separators."""
        return str(key.fingerprint).replace(" ", "").upper()

    def is_protected(self, key: pgpy.PGPKey) -> bool:
        return bool(key.is_protected)

    def primary_identity(self, key: pgpy.PGPKey) -> UserIdentity:
        """
        Identity of the primary user id (first user id if none is marked).

        Raises:
            KeyServiceError: If the key has no user ids
        """
        userids = list(key.userids)
        if not userids:
            raise KeyServiceError("Key has no user id")
        uid = next((u for u in userids if u.is_primary), userids[0])
        name = uid.name or uid.email or ""
        return UserIdentity(name=name, email=uid.email or "")

    async def encrypt(self, plaintext: str, key: pgpy.PGPKey) -> str:
        """
        Encrypt text to a public key.

        Returns:
            Armored message
        """
        try:
            message = key.encrypt(pgpy.PGPMessage.new(plaintext))
        except (PGPError, PGPEncryptionError) as e:
            raise KeyServiceError(f"Encryption failed: {e}")
        return str(message)

    async def decrypt(self, ciphertext: str, unlocked: UnlockedKey) -> str:
        """
        Decrypt an armored message.

        Raises:
            KeyDecryptError: If the key cannot decrypt the message
        """
        try:
            message = pgpy.PGPMessage.from_blob(ciphertext)
        except Exception as e:
            raise KeyDecryptError(f"Unreadable message: {e}")

        key = unlocked.key
        try:
            if key.is_protected:
                with key.unlock(unlocked.passphrase or ""):
                    decrypted = key.decrypt(message)
            else:
                decrypted = key.decrypt(message)
        except (PGPError, PGPDecryptionError) as e:
            raise KeyDecryptError(str(e))

        return _message_text(decrypted.message)


def _message_text(content: Union[str, bytes, bytearray]) -> str:
    if isinstance(content, (bytes, bytearray)):
        return bytes(content).decode("utf-8", errors="replace")
    return content
