# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identifier normalization for parent-student links.

Backend payloads and caller input mix numeric and string forms of the same
identifier (``5`` vs ``"5"``). Every identifier entering or leaving the
relationship store goes through normalize_id() so comparisons are always
made between canonical strings.

Example:
    >>> normalize_id(5) == normalize_id("5")
    True
    >>> EntityId(7.0)
    '7'
"""

from typing import Any
from uuid import UUID

# Strings produced by careless interpolation of missing values upstream
PLACEHOLDER_IDS = frozenset({"null", "undefined"})


def normalize_id(value: Any) -> str | None:
    """Coerce an identifier to its canonical string form.

    Args:
        value: Identifier as an int, integral float, string or UUID.

    Returns:
        Canonical string, or None if value is None.

    Raises:
        TypeError: If value is a bool or any other unsupported type.
    """
    if value is None:
        return None
    # bool is an int subclass; True is never a meaningful identifier
    if isinstance(value, bool):
        raise TypeError("Boolean values are not identifiers")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (str, UUID)):
        return str(value).strip()
    raise TypeError(f"Unsupported identifier type: {type(value).__name__}")


def try_normalize_id(value: Any) -> str | None:
    """Normalize an identifier, returning None instead of raising."""
    try:
        return normalize_id(value)
    except TypeError:
        return None


def is_placeholder_id(value: str | None) -> bool:
    """Check for the literal "null"/"undefined" strings."""
    return value is not None and value.lower() in PLACEHOLDER_IDS


def same_id(left: Any, right: Any) -> bool:
    """Compare two identifiers after normalization."""
    return try_normalize_id(left) == try_normalize_id(right)


class EntityId(str):
    """A normalized, non-empty entity identifier.

    Construction always normalizes, so ``EntityId(5) == EntityId("5")``.
    """

    __slots__ = ()

    def __new__(cls, value: Any) -> "EntityId":
        normalized = normalize_id(value)
        if not normalized or is_placeholder_id(normalized):
            raise ValueError(f"Not a usable identifier: {value!r}")
        return super().__new__(cls, normalized)

    @classmethod
    def of(cls, value: Any) -> "EntityId | None":
        """Build an EntityId, or return None for unusable values."""
        try:
            return cls(value)
        except (TypeError, ValueError):
            return None
