"""Authenticated subject entity."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from federation_sync.domain.cache_keys import build_cache_key, subject_prefix
from federation_sync.domain.enums import SubjectRole


@dataclass(frozen=True)
class Subject:
    """The authenticated identity a session acts as.

    Attributes:
        identity: Backend user identifier
        role: Role of the user
        display_name: Optional human-readable name
    """

    identity: str
    role: SubjectRole
    display_name: str | None = None

    def __post_init__(self) -> None:
        """Validate subject after initialization."""
        if not str(self.identity).strip():
            raise ValueError("Subject identity cannot be empty")

    def cache_key(
        self, namespace: str, discriminator: Mapping[str, Any] | str | None = None
    ) -> str:
        """Cache key for this subject's view of ``namespace``."""
        return build_cache_key(namespace, self.identity, self.role, discriminator)

    def cache_prefix(self, namespace: str) -> str:
        """Prefix matching every key of this subject in ``namespace``."""
        return subject_prefix(namespace, self.identity, self.role)

    def owns(self, user_id: int | str | None) -> bool:
        """True if a backend record's ``user_id`` refers to this subject."""
        return user_id is not None and str(user_id) == str(self.identity)
