"""
Shared fixtures: real OpenPGP keys (generated once per run) and stores.
"""

import os
from dataclasses import dataclass
from typing import Optional

import pgpy
import pytest
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

from idkeep import IdentityManager
from idkeep.db import DatabaseConnection, initialize_schema
from idkeep.identity import CredentialImporter, IdentityStore, KeyPairVerifier
from idkeep.keys import OpenPGPKeyService, PrivateKeyCache

PASSPHRASE = "correct horse battery staple"

# Stored verbatim, never parsed.
REVOCATION_CERTIFICATE = """-----BEGIN PGP PUBLIC KEY BLOCK-----
Comment: This is a revocation certificate

iQE2BCABCAAgFiEEexampleexampleexampleexampleexampleAAoJEHJldm9rZWQA
=abcd
-----END PGP PUBLIC KEY BLOCK-----
"""


@dataclass(frozen=True)
class KeyMaterial:
    public: str
    private: str
    fingerprint: str
    name: str
    email: str


def generate_key(name: str, email: str, passphrase: Optional[str] = None) -> KeyMaterial:
    key = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = pgpy.PGPUID.new(name, email=email)
    key.add_uid(
        uid,
        usage={KeyFlags.Sign, KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage},
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.ZLIB, CompressionAlgorithm.Uncompressed],
    )
    if passphrase:
        key.protect(passphrase, SymmetricKeyAlgorithm.AES256, HashAlgorithm.SHA256)
    return KeyMaterial(
        public=str(key.pubkey),
        private=str(key),
        fingerprint=str(key.fingerprint).replace(" ", "").upper(),
        name=name,
        email=email,
    )


@pytest.fixture(scope="session")
def alice() -> KeyMaterial:
    return generate_key("Alice", "alice@example.com")


@pytest.fixture(scope="session")
def bob() -> KeyMaterial:
    return generate_key("Bob", "bob@example.com")


@pytest.fixture(scope="session")
def carol() -> KeyMaterial:
    return generate_key("Carol", "carol@example.com")


@pytest.fixture(scope="session")
def dave_protected() -> KeyMaterial:
    return generate_key("Dave", "dave@example.com", passphrase=PASSPHRASE)


@pytest.fixture
def db(tmp_path):
    connection = DatabaseConnection(os.path.join(tmp_path, "test.db"))
    connection.connect()
    initialize_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def store(db) -> IdentityStore:
    return IdentityStore(db)


@pytest.fixture
def key_service() -> OpenPGPKeyService:
    return OpenPGPKeyService()


def build_importer(store: IdentityStore, passphrase_provider=None) -> CredentialImporter:
    key_service = OpenPGPKeyService()
    cache = PrivateKeyCache(key_service, passphrase_provider)
    verifier = KeyPairVerifier(key_service, cache)
    return CredentialImporter(key_service, verifier, store)


@pytest.fixture
def importer(store) -> CredentialImporter:
    return build_importer(store)


@pytest.fixture
def manager(tmp_path):
    with IdentityManager(os.path.join(tmp_path, "manager.db")) as engine:
        yield engine
