"""
Credential import workflow.

import_or_update() runs, strictly in order: in-flight guard, public key
presence, key-pair verification, public key parsing, store lookup, and then
exactly one of create, update, or reject. The session's pending flag is
released on every exit path.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from ..buffers import Buffer, clear_buffers
from ..errors import (
    AlreadyExistsError,
    CredentialError,
    DatabaseError,
    IdentityAlreadyExistsError,
    IdentityNotFoundError,
    IdentityStoreError,
    ImportPendingError,
    KeyParseError,
    KeyServiceError,
    MissingPublicKeyError,
    ParseFailureError,
    PublicKeyChangedError,
    SessionClosedError,
    StoreFailureError,
)
from ..invariants import validate_public_key_unchanged
from ..keys.service import OpenPGPKeyService
from ..logger import get_logger
from ..result import Result
from .identity_store import Identity, IdentityStore
from .session import ImportSession, SessionHandle, Settled, Submitted
from .verifier import KeyPairVerifier

logger = get_logger(__name__)


@contextmanager
def _store_operation(operation: str) -> Iterator[None]:
    """Translate store errors into StoreFailureError."""
    try:
        yield
    except IdentityAlreadyExistsError:
        raise
    except (DatabaseError, IdentityStoreError) as e:
        raise StoreFailureError(operation, str(e))


def _normalize(text: Optional[str]) -> Optional[str]:
    return text if text else None


class CredentialImporter:
    """
    Parses, verifies and persists imported key material.
    """

    def __init__(
        self,
        key_service: OpenPGPKeyService,
        verifier: KeyPairVerifier,
        store: IdentityStore,
    ):
        self.key_service = key_service
        self.verifier = verifier
        self.store = store

    async def import_or_update(
        self,
        handle: SessionHandle,
        public_key_text: Optional[str] = None,
        private_key_text: Optional[str] = None,
        certificate_text: Optional[str] = None,
    ) -> Result:
        """
        Create a new identity or update the one being edited.

        Texts left as None are read from the handle's buffers. On success the
        buffers are cleared and the session closed.

        Args:
            handle: Session holder for this import editor
            public_key_text: Armored public key
            private_key_text: Armored private key, optional
            certificate_text: Armored revocation certificate, optional

        Returns:
            Result carrying the fingerprint, or the failure. A call made while
            another import is in flight fails with ImportPending, and a call
            on a closed session fails with SessionClosed; neither touches
            anything.
        """
        if handle.session.pending:
            logger.warning("Import rejected: another import is in flight")
            return Result.failure(ImportPendingError())
        if not handle.session.is_open:
            logger.warning("Import rejected: session is closed")
            return Result.failure(SessionClosedError())

        handle.dispatch(Submitted())
        try:
            if public_key_text is None:
                public_key_text = handle.text(Buffer.PUBLIC_KEY)
            if private_key_text is None:
                private_key_text = handle.text(Buffer.PRIVATE_KEY)
            if certificate_text is None:
                certificate_text = handle.text(Buffer.REVOCATION_CERTIFICATE)

            fingerprint = await self._import(
                handle.session, public_key_text, private_key_text, certificate_text
            )
        except CredentialError as e:
            logger.info("Import failed: %s", e)
            if e.buffer is not None and handle.session.is_open:
                handle.focus(e.buffer)
            return Result.failure(e)
        finally:
            handle.dispatch(Settled())

        if handle.session.is_open:
            clear_buffers(handle.buffers)
            handle.close()
        else:
            logger.debug("Import of %s finished after its editor closed", fingerprint)
        return Result.success(fingerprint)

    async def check_key_pair(self, handle: SessionHandle) -> Result:
        """
        Verify the key pair currently in the buffers without importing it.
        """
        result = await self.verifier.check(
            handle.text(Buffer.PUBLIC_KEY),
            handle.text(Buffer.PRIVATE_KEY),
        )
        if not result.ok and result.error.buffer is not None:
            handle.focus(result.error.buffer)
        return result

    async def edit(self, handle: SessionHandle, fingerprint: str) -> Identity:
        """
        Load a stored identity into the handle and switch to edit mode.

        Raises:
            ImportPendingError: If an import is in flight
            IdentityNotFoundError: If the fingerprint is unknown
            StoreFailureError: If the lookup fails
        """
        if handle.session.pending:
            raise ImportPendingError()

        handle.dispatch(Submitted())
        try:
            with _store_operation("find"):
                identity = await self.store.find_by_fingerprint(fingerprint)
            if identity is None:
                raise IdentityNotFoundError(fingerprint)
            handle.open_existing(identity)
            return identity
        finally:
            handle.dispatch(Settled())

    async def _import(
        self,
        session: ImportSession,
        public_key_text: str,
        private_key_text: str,
        certificate_text: str,
    ) -> str:
        if not public_key_text:
            raise MissingPublicKeyError()

        if private_key_text:
            verified = await self.verifier.verify(public_key_text, private_key_text)
            if not verified.ok:
                raise verified.error

        try:
            key = await self.key_service.parse_public_key(public_key_text)
        except KeyParseError as e:
            raise ParseFailureError(Buffer.PUBLIC_KEY, str(e))
        fingerprint = self.key_service.fingerprint(key)

        with _store_operation("find"):
            existing = await self.store.find_by_fingerprint(fingerprint)

        if session.is_editing:
            await self._update(
                session.editing_fingerprint, fingerprint, existing,
                private_key_text, certificate_text,
            )
        elif existing is not None:
            logger.info("Identity %s already exists", fingerprint)
            raise AlreadyExistsError(fingerprint, existing)
        else:
            await self._create(key, fingerprint, public_key_text, private_key_text, certificate_text)

        return fingerprint

    async def _create(
        self,
        key,
        fingerprint: str,
        public_key_text: str,
        private_key_text: str,
        certificate_text: str,
    ):
        try:
            user = self.key_service.primary_identity(key)
        except KeyServiceError as e:
            raise ParseFailureError(Buffer.PUBLIC_KEY, str(e))

        identity = Identity(
            fingerprint=fingerprint,
            public_key=public_key_text,
            private_key=private_key_text,
            revocation_certificate=certificate_text,
            name=user.name,
            email=user.email,
        )
        try:
            with _store_operation("insert"):
                await self.store.insert(identity)
        except IdentityAlreadyExistsError:
            raise AlreadyExistsError(fingerprint)
        logger.info("Created identity %s", fingerprint)

    async def _update(
        self,
        editing_fingerprint: str,
        fingerprint: str,
        existing: Optional[Identity],
        private_key_text: str,
        certificate_text: str,
    ):
        if fingerprint != editing_fingerprint:
            raise PublicKeyChangedError(editing_fingerprint, fingerprint)
        if existing is None:
            raise IdentityNotFoundError(fingerprint)

        changes = {}
        if _normalize(private_key_text) != existing.private_key:
            changes["private_key"] = private_key_text
        if _normalize(certificate_text) != existing.revocation_certificate:
            changes["revocation_certificate"] = certificate_text

        with _store_operation("update"):
            await self.store.update_fields(fingerprint, changes)
            updated = await self.store.find_by_fingerprint(fingerprint)

        if updated is not None:
            validate_public_key_unchanged(existing, updated)
        logger.info("Updated identity %s", fingerprint)
