"""
Editor buffers holding raw key material.
The set of buffers is fixed: public key, private key, revocation certificate.
"""

from enum import Enum
from typing import Dict, Protocol


class Buffer(Enum):
    """The three well-known editor buffers."""

    PUBLIC_KEY = "public_key"
    PRIVATE_KEY = "private_key"
    REVOCATION_CERTIFICATE = "revocation_certificate"


class EditorBuffers(Protocol):
    """Text storage for the import editor (provided by the UI layer)."""

    def get(self, buffer: Buffer) -> str:
        ...

    def set(self, buffer: Buffer, text: str) -> None:
        ...


class InMemoryBuffers:
    """
    Plain dictionary-backed buffers.
    Used by the demo and tests in place of a real text editor.
    """

    def __init__(self, **initial: str):
        self._texts: Dict[Buffer, str] = {buffer: "" for buffer in Buffer}
        for name, text in initial.items():
            self._texts[Buffer(name)] = text

    def get(self, buffer: Buffer) -> str:
        return self._texts[buffer]

    def set(self, buffer: Buffer, text: str) -> None:
        self._texts[buffer] = text


def clear_buffers(buffers: EditorBuffers) -> None:
    """Reset every buffer to empty text."""
    buffers.set(Buffer.PUBLIC_KEY, "")
    buffers.set(Buffer.PRIVATE_KEY, "")
    buffers.set(Buffer.REVOCATION_CERTIFICATE, "")
