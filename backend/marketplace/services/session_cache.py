"""Process-wide cache of resolved viewers (identity + profile).

Pages used to re-resolve the session and profile on every request. The
cache keeps one entry per access token for a bounded time and is
invalidated explicitly on sign-in, sign-out and profile writes.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable
from uuid import UUID

from marketplace.config import get_settings
from marketplace.schemas.profile import ProfileRead
from marketplace.services.identity_client import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewer:
    """Who is looking at the page. Both fields are None for anonymous viewers."""

    identity: Identity | None = None
    profile: ProfileRead | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def has_profile(self) -> bool:
        return self.profile is not None

    @property
    def profile_id(self) -> UUID | None:
        return self.profile.id if self.profile else None

    @property
    def is_creator(self) -> bool:
        return bool(self.profile and self.profile.is_creator)

    @property
    def is_business(self) -> bool:
        return bool(self.profile and self.profile.is_business)

    def owns(self, profile_id: UUID) -> bool:
        return self.profile_id is not None and self.profile_id == profile_id


ANONYMOUS = Viewer()


@dataclass
class _Entry:
    viewer: Viewer
    expires_at: float = field(default=0.0)


class SessionCache:
    def __init__(self, ttl_seconds: float, max_entries: int = 10_000,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, access_token: str) -> Viewer | None:
        entry = self._entries.get(access_token)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[access_token]
            return None
        return entry.viewer

    def put(self, access_token: str, viewer: Viewer) -> None:
        self._entries.pop(access_token, None)
        now = self._clock()
        self._evict(now)
        self._entries[access_token] = _Entry(viewer=viewer, expires_at=now + self.ttl_seconds)

    def _evict(self, now: float) -> None:
        """Drop expired entries, then the oldest ones while the cache is full."""
        expired = [token for token, entry in self._entries.items() if entry.expires_at <= now]
        for token in expired:
            del self._entries[token]

        overflow = len(self._entries) - self.max_entries + 1
        if overflow > 0:
            # dicts keep insertion order, so the first keys are the oldest puts
            for token in list(self._entries)[:overflow]:
                del self._entries[token]
            logger.debug(f"Session cache full, evicted {overflow} entries")

    def invalidate_token(self, access_token: str) -> None:
        self._entries.pop(access_token, None)

    def invalidate_user(self, user_id: UUID) -> None:
        """Drop every cached entry for a user (sign-in, profile created or edited)."""
        stale = [
            token for token, entry in self._entries.items()
            if entry.viewer.identity is not None and entry.viewer.identity.id == user_id
        ]
        for token in stale:
            del self._entries[token]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached session(s) for {user_id}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


_session_cache: SessionCache | None = None


def get_session_cache() -> SessionCache:
    """FastAPI dependency returning the process-wide cache."""
    global _session_cache
    if _session_cache is None:
        settings = get_settings()
        _session_cache = SessionCache(
            ttl_seconds=settings.session_cache_ttl_seconds,
            max_entries=settings.session_cache_max_entries,
        )
    return _session_cache
