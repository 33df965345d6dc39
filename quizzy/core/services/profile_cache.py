"""Advisory cache of per-user profile statistics."""

from __future__ import annotations

from threading import Lock
from typing import Protocol

from quizzy.core.models import ProfileSummary


class ProfileCache(Protocol):
    def read_cached(self, owner_id: str) -> ProfileSummary | None: ...

    def write_cached(self, owner_id: str, summary: ProfileSummary) -> None: ...


class InMemoryProfileCache:
    """Dictionary-backed profile cache."""

    def __init__(self) -> None:
        self._profiles: dict[str, ProfileSummary] = {}
        self._lock = Lock()

    def read_cached(self, owner_id: str) -> ProfileSummary | None:
        with self._lock:
            return self._profiles.get(owner_id)

    def write_cached(self, owner_id: str, summary: ProfileSummary) -> None:
        with self._lock:
            self._profiles[owner_id] = summary
