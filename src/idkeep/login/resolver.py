"""
Login identity resolution.

When an application asks to log in, the resolver finds the stored identities
whose fingerprints the application trusts and settles on one of four states:
Searching, NotFound, Found, or Ambiguous. With exactly two candidates,
pick_one() toggles to the other candidate and commits; with more, it only
asks the UI to present the full list, and choose() commits the selection.
"""

from dataclasses import dataclass, replace
from typing import Optional, Protocol, Sequence, Tuple, Union

from ..identity.identity_store import Identity, IdentityStore
from ..logger import get_logger

logger = get_logger(__name__)


class AppFingerprintLookup(Protocol):
    """Fingerprints trusted by the application requesting the login."""

    async def candidates_for_requesting_app(self) -> Sequence[str]:
        ...


class TrustedFingerprints:
    """Lookup over a fixed, ordered list of fingerprints."""

    def __init__(self, fingerprints: Sequence[str]):
        self.fingerprints = tuple(fingerprints)

    async def candidates_for_requesting_app(self) -> Sequence[str]:
        return self.fingerprints


@dataclass(frozen=True)
class Searching:
    pass


@dataclass(frozen=True)
class NotFound:
    diagnostic: Optional[str] = None


@dataclass(frozen=True)
class Found:
    identity: Identity


@dataclass(frozen=True)
class Ambiguous:
    """
    Several identities match.
    candidates holds the stored identities in lookup order so a committed
    pick needs no second store read; fingerprints gives the bare keys.
    listing is set once the UI must show every candidate for an explicit pick.
    """

    candidates: tuple
    selected_index: int = 0
    listing: bool = False

    @property
    def fingerprints(self) -> Tuple[str, ...]:
        return tuple(identity.fingerprint for identity in self.candidates)


LoginState = Union[Searching, NotFound, Found, Ambiguous]


def settle(candidates: Sequence[Identity]) -> LoginState:
    """State for a finished search."""
    if not candidates:
        return NotFound()
    if len(candidates) == 1:
        return Found(candidates[0])
    return Ambiguous(tuple(candidates))


def pick_one(state: LoginState) -> LoginState:
    """
    Advance an ambiguous match.

    Two candidates: commit the other one. More than two: switch to the
    selection list without moving the selection. Any other state is returned
    unchanged.
    """
    if not isinstance(state, Ambiguous):
        return state
    if len(state.candidates) == 2:
        return Found(state.candidates[(state.selected_index + 1) % 2])
    # TODO: product review of round-robin cycling for three or more candidates
    return replace(state, listing=True)


def choose(state: LoginState, index: int) -> LoginState:
    """
    Commit an explicit selection from an ambiguous match.

    Raises:
        IndexError: If index is outside the candidate list
        ValueError: If the state is not Ambiguous
    """
    if not isinstance(state, Ambiguous):
        raise ValueError(f"Cannot choose a candidate in state {state!r}")
    if not 0 <= index < len(state.candidates):
        raise IndexError(f"Candidate index {index} out of range")
    return Found(state.candidates[index])


class IdentityResolver:
    """
    Drives the login state machine for one login attempt.
    """

    def __init__(self, store: IdentityStore, app_lookup: AppFingerprintLookup):
        self.store = store
        self.app_lookup = app_lookup
        self._state: LoginState = Searching()

    @property
    def state(self) -> LoginState:
        return self._state

    async def resolve(self) -> LoginState:
        """
        Search the store for identities the application trusts.

        Lookup or store failures end in NotFound with a diagnostic.
        """
        self._state = Searching()
        try:
            candidates = await self._find_candidates()
        except Exception as e:
            logger.warning("Identity lookup failed: %s", e)
            self._state = NotFound(diagnostic=f"{e.__class__.__name__}: {e}")
            return self._state

        self._state = settle(candidates)
        if isinstance(self._state, Ambiguous):
            logger.info("Login is ambiguous between %s", ", ".join(self._state.fingerprints))
        else:
            logger.info(
                "Resolved login to %s (%d candidate(s))",
                self._state.__class__.__name__, len(candidates),
            )
        return self._state

    async def restart(self) -> LoginState:
        """Search again, e.g. after a credential was imported."""
        return await self.resolve()

    def pick_one(self) -> LoginState:
        self._state = pick_one(self._state)
        return self._state

    def choose(self, index: int) -> LoginState:
        self._state = choose(self._state, index)
        return self._state

    async def _find_candidates(self) -> list[Identity]:
        fingerprints = await self.app_lookup.candidates_for_requesting_app()
        candidates = []
        seen = set()
        for fingerprint in fingerprints:
            if fingerprint in seen:
                continue
            seen.add(fingerprint)
            identity = await self.store.find_by_fingerprint(fingerprint)
            if identity is not None:
                candidates.append(identity)
        return candidates
