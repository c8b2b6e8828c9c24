"""
Import session state.

An ImportSession is an immutable value; every UI event produces the next
value through apply(). SessionHandle is the single mutable holder that pairs
the current value with the editor buffers.
"""

from dataclasses import dataclass, replace
from typing import Optional, Union

from ..buffers import Buffer, EditorBuffers, InMemoryBuffers, clear_buffers
from ..logger import get_logger
from .identity_store import Identity

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportSession:
    """State of one open import editor."""

    editing_fingerprint: Optional[str] = None
    pending: bool = False
    focused_buffer: Buffer = Buffer.PUBLIC_KEY
    is_open: bool = True

    @property
    def is_editing(self) -> bool:
        return self.editing_fingerprint is not None


# Events


@dataclass(frozen=True)
class Opened:
    fingerprint: Optional[str] = None


@dataclass(frozen=True)
class Focused:
    buffer: Buffer


@dataclass(frozen=True)
class Submitted:
    pass


@dataclass(frozen=True)
class Settled:
    pass


@dataclass(frozen=True)
class Closed:
    pass


SessionEvent = Union[Opened, Focused, Submitted, Settled, Closed]


def apply(session: ImportSession, event: SessionEvent) -> ImportSession:
    """
    Next session value for an event. Pure.

    Opening resets focus to the public key and keeps the pending flag, so an
    in-flight import is still guarded after a switch into edit mode.
    """
    if isinstance(event, Opened):
        return replace(
            session,
            editing_fingerprint=event.fingerprint,
            focused_buffer=Buffer.PUBLIC_KEY,
            is_open=True,
        )
    if isinstance(event, Focused):
        return replace(session, focused_buffer=event.buffer)
    if isinstance(event, Submitted):
        return replace(session, pending=True)
    if isinstance(event, Settled):
        return replace(session, pending=False)
    if isinstance(event, Closed):
        return replace(session, is_open=False)
    raise TypeError(f"Unknown session event: {event!r}")


def is_public_key_read_only(session: ImportSession) -> bool:
    """The public key of an existing identity cannot be edited."""
    return session.is_editing


def is_read_only(session: ImportSession, buffer: Optional[Buffer] = None) -> bool:
    """
    Editor read-only policy for a buffer (the focused one by default).
    """
    if buffer is None:
        buffer = session.focused_buffer
    return buffer is Buffer.PUBLIC_KEY and is_public_key_read_only(session)


class SessionHandle:
    """
    Holds the current ImportSession and the editor buffers it edits.
    """

    def __init__(
        self,
        session: Optional[ImportSession] = None,
        buffers: Optional[EditorBuffers] = None,
    ):
        self.session = session or ImportSession()
        self.buffers = buffers if buffers is not None else InMemoryBuffers()

    def dispatch(self, event: SessionEvent) -> ImportSession:
        self.session = apply(self.session, event)
        return self.session

    def open_new(self) -> ImportSession:
        """Start a fresh import with empty buffers."""
        clear_buffers(self.buffers)
        return self.dispatch(Opened())

    def open_existing(self, identity: Identity) -> ImportSession:
        """Switch into edit mode for a stored identity, loading its texts."""
        self.buffers.set(Buffer.PUBLIC_KEY, identity.public_key)
        self.buffers.set(Buffer.PRIVATE_KEY, identity.private_key or "")
        self.buffers.set(Buffer.REVOCATION_CERTIFICATE, identity.revocation_certificate or "")
        logger.debug("Editing identity %s", identity.fingerprint)
        return self.dispatch(Opened(identity.fingerprint))

    def focus(self, buffer: Buffer) -> ImportSession:
        return self.dispatch(Focused(buffer))

    def close(self) -> ImportSession:
        return self.dispatch(Closed())

    def text(self, buffer: Buffer) -> str:
        return self.buffers.get(buffer)

    @property
    def read_only(self) -> bool:
        """Read-only state of the focused buffer."""
        return is_read_only(self.session)
