"""
Tests for the SQLite credential store and schema handling.
"""

import asyncio
import os

import pytest

from idkeep.config import DB_SCHEMA_VERSION
from idkeep.db import DatabaseConnection, get_current_version, initialize_schema, verify_schema
from idkeep.errors import (
    IdentityAlreadyExistsError,
    IdentityStoreError,
    ImmutableFieldError,
    SchemaError,
)
from idkeep.identity import Identity
from idkeep.utils.time import MonotonicClock, parse_timestamp


class TestSchema:
    """Test schema creation and version checks."""

    def test_fresh_database(self, db):
        assert get_current_version(db) == DB_SCHEMA_VERSION
        assert verify_schema(db)

    def test_initialize_twice(self, db):
        initialize_schema(db)
        assert get_current_version(db) == DB_SCHEMA_VERSION

    def test_newer_version_rejected(self, db):
        with db.transaction():
            db.execute(
                "INSERT INTO schema_version (version, applied_at, description) VALUES (?, ?, ?)",
                (DB_SCHEMA_VERSION + 1, "2026-01-01T00:00:00.000000Z", "future"),
            )
        with pytest.raises(SchemaError):
            initialize_schema(db)

    def test_uninitialized_database(self, tmp_path):
        with DatabaseConnection(os.path.join(tmp_path, "empty.db")) as db:
            assert get_current_version(db) is None
            assert not verify_schema(db)

    def test_nested_transaction_rolls_back_with_outer(self, db, store):
        with pytest.raises(RuntimeError):
            with db.transaction():
                asyncio.run(store.insert(Identity("ABC", "public")))
                raise RuntimeError("abort")
        assert asyncio.run(store.find_by_fingerprint("ABC")) is None

    def test_nested_transaction_commits_with_outer(self, db, store):
        with db.transaction():
            asyncio.run(store.insert(Identity("ABC", "public")))
        assert asyncio.run(store.count()) == 1

    def test_in_memory_database(self):
        with DatabaseConnection(":memory:") as db:
            initialize_schema(db)
            assert verify_schema(db)


class TestIdentityStore:
    """Test identity persistence."""

    def test_insert_and_find(self, store):
        identity = Identity("ABC", "public", name="Alice", email="alice@example.com")
        asyncio.run(store.insert(identity))

        found = asyncio.run(store.find_by_fingerprint("ABC"))
        assert found.public_key == "public"
        assert found.name == "Alice"
        assert found.email == "alice@example.com"
        assert found.private_key is None
        assert found.created_at is not None

    def test_unknown_fingerprint(self, store):
        assert asyncio.run(store.find_by_fingerprint("nope")) is None

    def test_duplicate_fingerprint_rejected(self, store):
        asyncio.run(store.insert(Identity("ABC", "public")))
        with pytest.raises(IdentityAlreadyExistsError):
            asyncio.run(store.insert(Identity("ABC", "other")))
        assert asyncio.run(store.find_by_fingerprint("ABC")).public_key == "public"

    def test_empty_optional_fields_stored_as_absent(self, store):
        asyncio.run(store.insert(Identity("ABC", "public", private_key="", revocation_certificate="")))
        found = asyncio.run(store.find_by_fingerprint("ABC"))
        assert found.private_key is None
        assert found.revocation_certificate is None
        assert not found.has_private_key

    def test_set_field_writes_only_changes(self, store):
        asyncio.run(store.insert(Identity("ABC", "public")))

        assert asyncio.run(store.set_field("ABC", "private_key", "secret"))
        assert not asyncio.run(store.set_field("ABC", "private_key", "secret"))
        assert asyncio.run(store.find_by_fingerprint("ABC")).private_key == "secret"

    def test_set_field_clears(self, store):
        asyncio.run(store.insert(Identity("ABC", "public", revocation_certificate="cert")))
        assert asyncio.run(store.set_field("ABC", "revocation_certificate", ""))
        assert asyncio.run(store.find_by_fingerprint("ABC")).revocation_certificate is None

    def test_public_key_is_immutable(self, store):
        asyncio.run(store.insert(Identity("ABC", "public")))
        with pytest.raises(ImmutableFieldError):
            asyncio.run(store.set_field("ABC", "public_key", "other"))
        with pytest.raises(ImmutableFieldError):
            asyncio.run(store.set_field("ABC", "fingerprint", "DEF"))

    def test_unknown_field(self, store):
        with pytest.raises(IdentityStoreError):
            asyncio.run(store.set_field("ABC", "nickname; DROP TABLE identities", "x"))

    def test_update_fields_reports_changes(self, store):
        asyncio.run(store.insert(Identity("ABC", "public", private_key="secret")))
        changed = asyncio.run(store.update_fields(
            "ABC", {"private_key": "secret", "revocation_certificate": "cert"},
        ))
        assert changed == ["revocation_certificate"]

    def test_update_fields_all_or_nothing(self, store):
        asyncio.run(store.insert(Identity("ABC", "public")))
        with pytest.raises(ImmutableFieldError):
            asyncio.run(store.update_fields(
                "ABC", {"private_key": "secret", "public_key": "other"},
            ))
        assert asyncio.run(store.find_by_fingerprint("ABC")).private_key is None

    def test_list_all_in_creation_order(self, store):
        for fingerprint in ("C", "A", "B"):
            asyncio.run(store.insert(Identity(fingerprint, "public")))
        assert [i.fingerprint for i in asyncio.run(store.list_all())] == ["C", "A", "B"]
        assert asyncio.run(store.count()) == 3

    def test_to_dict(self):
        identity = Identity("ABC", "public", name="Alice")
        data = identity.to_dict()
        assert data['fingerprint'] == "ABC"
        assert data['private_key'] is None
        assert data['name'] == "Alice"


class TestTimestamps:

    def test_created_at_is_parseable_utc(self, store):
        asyncio.run(store.insert(Identity("ABC", "public")))
        created = parse_timestamp(asyncio.run(store.find_by_fingerprint("ABC")).created_at)
        assert created.tzinfo is not None

    def test_clock_never_repeats(self):
        clock = MonotonicClock()
        readings = [clock.now() for _ in range(50)]
        assert readings == sorted(set(readings))

    def test_invalid_timestamp(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")
