"""
Cache of unlocked private keys, keyed by fingerprint.
Protected keys are unlocked once with a passphrase from the provider and
reused until they expire or are evicted.
"""

import inspect
import time
from collections import OrderedDict
from typing import Awaitable, Callable, Optional, Union

from pgpy.errors import PGPDecryptionError, PGPError

from ..config import KEY_CACHE_MAX_ENTRIES, KEY_CACHE_TTL_SECONDS
from ..errors import PassphraseError
from ..logger import get_logger
from .service import OpenPGPKeyService, UnlockedKey

logger = get_logger(__name__)

PassphraseProvider = Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]]


class _Entry:
    __slots__ = ('unlocked', 'source', 'expires_at')

    def __init__(self, unlocked: UnlockedKey, source: str, expires_at: float):
        self.unlocked = unlocked
        self.source = source
        self.expires_at = expires_at


class PrivateKeyCache:
    """
    Unlocks private keys and keeps them for a limited time.
    """

    def __init__(
        self,
        key_service: OpenPGPKeyService,
        passphrase_provider: Optional[PassphraseProvider] = None,
        ttl: float = KEY_CACHE_TTL_SECONDS,
        max_entries: int = KEY_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            key_service: Service used to parse private keys
            passphrase_provider: Called with a fingerprint when a protected
                key needs its passphrase; may be a coroutine function
            ttl: Seconds an unlocked key stays cached
            max_entries: Oldest entries are evicted beyond this count
            clock: Monotonic time source
        """
        self.key_service = key_service
        self.passphrase_provider = passphrase_provider
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        self._evict_expired()
        return fingerprint in self._entries

    async def unlock(self, fingerprint: str, private_key_text: str) -> UnlockedKey:
        """
        Return an unlocked form of the private key.

        A cached entry is reused only when it was built from the same text.

        Raises:
            KeyParseError: If the private key cannot be parsed
            PassphraseError: If a protected key cannot be unlocked
        """
        self._evict_expired()
        entry = self._entries.get(fingerprint)
        if entry is not None and entry.source == private_key_text:
            self._entries.move_to_end(fingerprint)
            logger.debug("Private key cache hit for %s", fingerprint)
            return entry.unlocked

        key = await self.key_service.parse_private_key(private_key_text)
        passphrase = None
        if self.key_service.is_protected(key):
            passphrase = await self._ask_passphrase(fingerprint)
            _check_passphrase(key, passphrase, fingerprint)

        unlocked = UnlockedKey(fingerprint=fingerprint, key=key, passphrase=passphrase)
        self._store(fingerprint, unlocked, private_key_text)
        return unlocked

    def forget(self, fingerprint: str):
        """Drop one cached key."""
        self._entries.pop(fingerprint, None)

    def clear(self):
        """Drop every cached key."""
        self._entries.clear()

    async def _ask_passphrase(self, fingerprint: str) -> str:
        if self.passphrase_provider is None:
            raise PassphraseError(f"Private key {fingerprint} is protected and no passphrase is available")
        passphrase = self.passphrase_provider(fingerprint)
        if inspect.isawaitable(passphrase):
            passphrase = await passphrase
        if not passphrase:
            raise PassphraseError(f"No passphrase given for private key {fingerprint}")
        return passphrase

    def _store(self, fingerprint: str, unlocked: UnlockedKey, source: str):
        self._entries[fingerprint] = _Entry(unlocked, source, self._clock() + self.ttl)
        self._entries.move_to_end(fingerprint)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted private key %s from cache", evicted)

    def _evict_expired(self):
        current = self._clock()
        expired = [fp for fp, entry in self._entries.items() if entry.expires_at <= current]
        for fingerprint in expired:
            del self._entries[fingerprint]
            logger.debug("Private key %s expired from cache", fingerprint)


def _check_passphrase(key, passphrase: str, fingerprint: str):
    try:
        with key.unlock(passphrase):
            pass
    except (PGPError, PGPDecryptionError) as e:
        raise PassphraseError(f"Wrong passphrase for private key {fingerprint}: {e}")
