"""
Process-local cache of bearer token validity.
"""

import time
from typing import Callable, Dict, NamedTuple, Optional


DEFAULT_VALID_TTL_SECONDS = 900.0
DEFAULT_INVALID_TTL_SECONDS = 30.0


class CachedTokenEntry(NamedTuple):
    valid: bool
    expires_at: float


class TokenCache:
    """Maps opaque tokens to a validity flag with a freshness window.

    Expiry is checked lazily on read; there is no background sweep. Writes
    are single dict assignments, so concurrent requests can share one
    instance without locking (last write wins).
    """

    def __init__(self,
                 valid_ttl_seconds: float = DEFAULT_VALID_TTL_SECONDS,
                 invalid_ttl_seconds: float = DEFAULT_INVALID_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        if valid_ttl_seconds <= 0 or invalid_ttl_seconds <= 0:
            raise ValueError("TTL values must be positive")
        if invalid_ttl_seconds >= valid_ttl_seconds:
            raise ValueError("invalid_ttl_seconds must be shorter than valid_ttl_seconds")
        self.valid_ttl_seconds = valid_ttl_seconds
        self.invalid_ttl_seconds = invalid_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CachedTokenEntry] = {}

    def get(self, token: str) -> Optional[bool]:
        """Cached validity for ``token``, or None on a miss or expired entry."""
        entry = self._entries.get(token)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            # Only drop the entry we read; a concurrent refresh may have replaced it.
            if self._entries.get(token) is entry:
                self._entries.pop(token, None)
            return None
        return entry.valid

    def set(self, token: str, valid: bool, ttl_seconds: Optional[float] = None) -> None:
        """Store or overwrite the entry for ``token``."""
        if ttl_seconds is None:
            ttl_seconds = self.valid_ttl_seconds if valid else self.invalid_ttl_seconds
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[token] = CachedTokenEntry(bool(valid), self._clock() + ttl_seconds)

    def ttl_for(self, valid: bool) -> float:
        """Default freshness window applied to a result."""
        return self.valid_ttl_seconds if valid else self.invalid_ttl_seconds

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
