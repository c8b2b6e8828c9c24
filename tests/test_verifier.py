"""
Tests for key-pair verification.
"""

import asyncio

import pytest

from conftest import PASSPHRASE
from idkeep import Buffer
from idkeep.identity import KeyPairVerifier
from idkeep.identity import verifier as verifier_module
from idkeep.keys import OpenPGPKeyService, PrivateKeyCache


@pytest.fixture
def verifier(key_service):
    return KeyPairVerifier(key_service, PrivateKeyCache(key_service))


class TestRoundTripProof:
    """A pair verifies only if the private key decrypts the nonce."""

    def test_matching_pair(self, verifier, alice):
        result = asyncio.run(verifier.verify(alice.public, alice.private))
        assert result.ok
        assert result.value.fingerprint == alice.fingerprint

    def test_every_generated_pair_matches(self, verifier, alice, bob, carol):
        for material in (alice, bob, carol):
            assert asyncio.run(verifier.verify(material.public, material.private)).ok

    def test_unrelated_pair_mismatch(self, verifier, alice, bob):
        result = asyncio.run(verifier.verify(alice.public, bob.private))
        assert not result.ok
        assert result.kind == "KeyPairMismatch"
        assert result.error.buffer is Buffer.PRIVATE_KEY

    def test_mismatch_not_left_in_cache(self, key_service, alice, bob):
        cache = PrivateKeyCache(key_service)
        verifier = KeyPairVerifier(key_service, cache)
        asyncio.run(verifier.verify(alice.public, bob.private))
        assert alice.fingerprint not in cache

    def test_protected_pair(self, key_service, dave_protected):
        cache = PrivateKeyCache(key_service, lambda fingerprint: PASSPHRASE)
        verifier = KeyPairVerifier(key_service, cache)
        result = asyncio.run(verifier.verify(dave_protected.public, dave_protected.private))
        assert result.ok

    def test_protected_pair_wrong_passphrase(self, key_service, dave_protected):
        cache = PrivateKeyCache(key_service, lambda fingerprint: "nope")
        verifier = KeyPairVerifier(key_service, cache)
        result = asyncio.run(verifier.verify(dave_protected.public, dave_protected.private))
        assert result.kind == "Passphrase"
        assert result.error.buffer is Buffer.PRIVATE_KEY

    def test_decrypted_text_must_equal_nonce(self, verifier, alice, monkeypatch):
        """A pair that round-trips a different text than the nonce fails."""
        original_decrypt = OpenPGPKeyService.decrypt

        async def tampered(self, ciphertext, unlocked):
            return (await original_decrypt(self, ciphertext, unlocked)) + " "

        monkeypatch.setattr(OpenPGPKeyService, "decrypt", tampered)
        result = asyncio.run(verifier.verify(alice.public, alice.private))
        assert result.kind == "KeyPairMismatch"

    def test_fresh_nonce_per_call(self, verifier, alice, monkeypatch):
        nonces = []
        original = verifier_module.new_nonce

        def recording():
            nonce = original()
            nonces.append(nonce)
            return nonce

        monkeypatch.setattr(verifier_module, "new_nonce", recording)
        asyncio.run(verifier.verify(alice.public, alice.private))
        asyncio.run(verifier.verify(alice.public, alice.private))

        assert len(nonces) == 2
        assert nonces[0] != nonces[1]


class TestParseFailures:
    """Parse failures name the offending buffer."""

    def test_bad_public_key(self, verifier, alice):
        result = asyncio.run(verifier.verify("garbage", alice.private))
        assert result.kind == "ParseFailure"
        assert result.error.which is Buffer.PUBLIC_KEY

    def test_bad_private_key(self, verifier, alice):
        result = asyncio.run(verifier.verify(alice.public, "garbage"))
        assert result.kind == "ParseFailure"
        assert result.error.which is Buffer.PRIVATE_KEY

    def test_swapped_texts(self, verifier, alice):
        result = asyncio.run(verifier.verify(alice.private, alice.public))
        assert result.error.which is Buffer.PUBLIC_KEY


class TestCheck:
    """The checking-only path requires both keys."""

    def test_missing_public_key(self, verifier, alice):
        result = asyncio.run(verifier.check("", alice.private))
        assert result.kind == "MissingPublicKey"

    def test_missing_private_key(self, verifier, alice):
        result = asyncio.run(verifier.check(alice.public, ""))
        assert result.kind == "MissingPrivateKey"
        assert result.error.buffer is Buffer.PRIVATE_KEY

    def test_check_runs_verification(self, verifier, alice, bob):
        assert asyncio.run(verifier.check(alice.public, alice.private)).ok
        assert asyncio.run(verifier.check(alice.public, bob.private)).kind == "KeyPairMismatch"

    def test_unwrap_raises_error(self, verifier, alice, bob):
        from idkeep.errors import KeyPairMismatchError

        result = asyncio.run(verifier.check(alice.public, bob.private))
        with pytest.raises(KeyPairMismatchError):
            result.unwrap()
