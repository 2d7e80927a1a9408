# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Validation of parent-student link candidates.

A candidate is any mapping or object carrying a parent and a student
identifier, under camelCase (``parentId``) or snake_case (``parent_id``)
names. Validation runs before every create and every delete-by-pair, so
malformed input never reaches the network.
"""

from collections.abc import Mapping
from typing import Any

from src.domains.parent_relation.exceptions import LinkValidationError
from src.domains.parent_relation.ids import is_placeholder_id, normalize_id

MISSING = object()

# (label, camelCase key, snake_case key)
LINK_ID_FIELDS = (
    ("parent", "parentId", "parent_id"),
    ("student", "studentId", "student_id"),
)


def read_field(candidate: Any, camel: str, snake: str) -> Any:
    """Read a field by its camelCase or snake_case name.

    Returns:
        The value, or a module sentinel when neither name is present.
    """
    if isinstance(candidate, Mapping):
        if camel in candidate:
            return candidate[camel]
        return candidate.get(snake, MISSING)
    value = getattr(candidate, camel, MISSING)
    if value is MISSING:
        value = getattr(candidate, snake, MISSING)
    return value


def is_missing(value: Any) -> bool:
    """Check for an absent key, None or a blank string."""
    if value is MISSING or value is None:
        return True
    return isinstance(value, str) and not value.strip()


def is_invalid(value: Any) -> bool:
    """Check for placeholder strings and values that cannot be normalized."""
    try:
        return is_placeholder_id(normalize_id(value))
    except TypeError:
        return True


def validate_id(value: Any, label: str) -> str | None:
    """Validate a single identifier.

    Args:
        value: Identifier to check.
        label: Field label used in the reason ("parent", "student", "link").

    Returns:
        None if valid, otherwise a short reason.
    """
    if is_missing(value):
        return f"Missing {label} ID"
    if is_invalid(value):
        return f"Invalid {label} ID value"
    return None


def validate_link(candidate: Any) -> str | None:
    """Validate a link candidate before it is sent to the network.

    Missing identifiers are reported before invalid ones, parent first.

    Args:
        candidate: Mapping or object with parent and student identifiers.

    Returns:
        None if valid, otherwise a reason naming the offending field.
    """
    if candidate is None:
        return "Relationship data is missing"

    values = [
        (label, read_field(candidate, camel, snake))
        for label, camel, snake in LINK_ID_FIELDS
    ]
    for label, value in values:
        if is_missing(value):
            return f"Missing {label} ID"
    for label, value in values:
        if is_invalid(value):
            return f"Invalid {label} ID value"
    return None


def ensure_valid_id(value: Any, label: str) -> str:
    """Validate and normalize a single identifier.

    Raises:
        LinkValidationError: If the identifier is missing or invalid.
    """
    reason = validate_id(value, label)
    if reason:
        raise LinkValidationError(reason)
    return normalize_id(value)


def ensure_valid_link(candidate: Any) -> tuple[str, str]:
    """Validate a link candidate and return its normalized identifiers.

    Args:
        candidate: Mapping or object with parent and student identifiers.

    Returns:
        Tuple of (parent_id, student_id) as canonical strings.

    Raises:
        LinkValidationError: If either identifier is missing or invalid.
    """
    reason = validate_link(candidate)
    if reason:
        raise LinkValidationError(reason)
    return (
        normalize_id(read_field(candidate, "parentId", "parent_id")),
        normalize_id(read_field(candidate, "studentId", "student_id")),
    )
