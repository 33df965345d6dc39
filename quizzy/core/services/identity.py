"""Identity provider boundary.

Credentials are verified elsewhere; the engine only needs to know who the
current user is and whether they are signed in.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from quizzy.constants.network_constants import OWNER_HEADER


class IdentityProvider(Protocol):
    def current_owner_id(self) -> str | None: ...

    def is_authenticated(self) -> bool: ...


class StaticIdentityProvider:
    """Identity fixed at construction time, for scripts and tests."""

    def __init__(self, owner_id: str | None) -> None:
        cleaned = owner_id.strip() if owner_id else ""
        self._owner_id = cleaned or None

    def current_owner_id(self) -> str | None:
        return self._owner_id

    def is_authenticated(self) -> bool:
        return self._owner_id is not None


class HeaderIdentityProvider(StaticIdentityProvider):
    """Identity asserted by an upstream auth proxy through a request header."""

    def __init__(self, headers: Mapping[str, str], header_name: str = OWNER_HEADER) -> None:
        super().__init__(headers.get(header_name))
