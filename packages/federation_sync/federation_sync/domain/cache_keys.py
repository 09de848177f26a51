"""Deterministic cache key derivation.

Keys are built from (namespace, identity, role[, discriminator]) so two
callers asking for the same data as the same subject share one entry, and two
subjects never address each other's entries.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode

from .enums import SubjectRole

KEY_SEPARATOR = ":"


def _role_value(role: SubjectRole | str) -> str:
    return role.value if isinstance(role, SubjectRole) else str(role)


def _canonical_value(value: Any) -> str:
    if isinstance(value, list | tuple | set | frozenset):
        items = sorted(value) if isinstance(value, set | frozenset) else value
        return ",".join(str(item) for item in items)
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def canonical_discriminator(discriminator: Mapping[str, Any] | str) -> str:
    """Render a query discriminator in a stable, order-independent form.

    Args:
        discriminator: Query parameters or an already canonical string

    Returns:
        Canonical string; mapping keys are sorted and ``None`` values dropped
    """
    if isinstance(discriminator, str):
        return quote(discriminator, safe="")
    pairs = sorted(
        (str(k), _canonical_value(v)) for k, v in discriminator.items() if v is not None
    )
    return urlencode(pairs)


def subject_prefix(namespace: str, identity: str | int, role: SubjectRole | str) -> str:
    """Prefix shared by every key of one subject within a namespace.

    Always ends with the separator so ``user 1`` never matches ``user 12``.
    """
    if not namespace or KEY_SEPARATOR in namespace:
        raise ValueError(f"Invalid cache namespace: {namespace!r}")
    identity_part = quote(str(identity), safe="")
    if not identity_part:
        raise ValueError("Subject identity cannot be empty")
    return KEY_SEPARATOR.join((namespace, identity_part, _role_value(role))) + KEY_SEPARATOR


def build_cache_key(
    namespace: str,
    identity: str | int,
    role: SubjectRole | str,
    discriminator: Mapping[str, Any] | str | None = None,
) -> str:
    """Build the cache key for a subject's view of some data.

    Args:
        namespace: Data family, e.g. ``dashboard`` or ``invitations``
        identity: Subject identifier
        role: Subject role
        discriminator: Optional query parameters distinguishing filtered views

    Returns:
        The cache key
    """
    key = subject_prefix(namespace, identity, role)
    if discriminator:
        return key + canonical_discriminator(discriminator)
    return key


def key_namespace(key: str) -> str:
    """Return the namespace portion of a key, used as a low-cardinality metric label."""
    return key.split(KEY_SEPARATOR, 1)[0]
