"""
Tagged results returned by the verifier and importer.
Callers decide how to present a failure; nothing here notifies the user.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .errors import CredentialError


@dataclass(frozen=True)
class Result:
    """Outcome of a verify or import call."""

    value: Any = None
    error: Optional[CredentialError] = None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CredentialError) -> "Result":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[str]:
        """Error tag, or None on success."""
        return None if self.error is None else self.error.kind

    def unwrap(self) -> Any:
        """
        Return the value or raise the carried error.

        Raises:
            CredentialError: If the result is a failure
        """
        if self.error is not None:
            raise self.error
        return self.value
