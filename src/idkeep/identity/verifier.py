"""
Key-pair verification.

A public and a private key belong together only if the private key decrypts
a fresh random nonce encrypted to the public key. Matching fingerprints are
not enough: a private key can parse cleanly and still belong to another pair.
"""

import uuid

from ..buffers import Buffer
from ..errors import (
    CredentialError,
    KeyDecryptError,
    KeyPairMismatchError,
    KeyParseError,
    KeyServiceError,
    MissingPrivateKeyError,
    MissingPublicKeyError,
    ParseFailureError,
)
from ..keys.cache import PrivateKeyCache
from ..keys.service import OpenPGPKeyService, UnlockedKey
from ..logger import get_logger
from ..result import Result

logger = get_logger(__name__)


def new_nonce() -> str:
    """Unpredictable single-use challenge text."""
    return str(uuid.uuid4())


class KeyPairVerifier:
    """
    Proves a public/private key pair are usable together.
    """

    def __init__(self, key_service: OpenPGPKeyService, key_cache: PrivateKeyCache):
        self.key_service = key_service
        self.key_cache = key_cache

    async def verify(self, public_key_text: str, private_key_text: str) -> Result:
        """
        Encrypt a nonce to the public key and decrypt it with the private key.

        Returns:
            Result carrying the UnlockedKey, or the failure
        """
        try:
            unlocked = await self._prove(public_key_text, private_key_text)
        except CredentialError as e:
            logger.info("Key pair verification failed: %s", e.kind)
            return Result.failure(e)
        return Result.success(unlocked)

    async def check(self, public_key_text: str, private_key_text: str) -> Result:
        """
        Verify a pair supplied by the user, requiring both texts.
        """
        if not public_key_text:
            return Result.failure(MissingPublicKeyError())
        if not private_key_text:
            return Result.failure(MissingPrivateKeyError())
        return await self.verify(public_key_text, private_key_text)

    async def _prove(self, public_key_text: str, private_key_text: str) -> UnlockedKey:
        try:
            public_key = await self.key_service.parse_public_key(public_key_text)
        except KeyParseError as e:
            raise ParseFailureError(Buffer.PUBLIC_KEY, str(e))
        try:
            await self.key_service.parse_private_key(private_key_text)
        except KeyParseError as e:
            raise ParseFailureError(Buffer.PRIVATE_KEY, str(e))

        fingerprint = self.key_service.fingerprint(public_key)
        try:
            unlocked = await self.key_cache.unlock(fingerprint, private_key_text)
        except KeyParseError as e:
            raise ParseFailureError(Buffer.PRIVATE_KEY, str(e))

        nonce = new_nonce()
        try:
            ciphertext = await self.key_service.encrypt(nonce, public_key)
        except KeyServiceError as e:
            raise ParseFailureError(Buffer.PUBLIC_KEY, f"Key cannot encrypt: {e}")
        try:
            decrypted = await self.key_service.decrypt(ciphertext, unlocked)
        except KeyDecryptError as e:
            logger.debug("Decryption with candidate private key failed: %s", e)
            decrypted = None

        if decrypted != nonce:
            self.key_cache.forget(fingerprint)
            raise KeyPairMismatchError()
        return unlocked
