# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent-student relation domain package.

This package reconciles the parent-student link graph held by the portal
backend:
- Normalizing identifiers that arrive as strings or numbers
- Validating link candidates before any network call
- Fetching, creating, replacing and deleting links through a cached store
"""

from src.domains.parent_relation.diagnostics import LinkInspection, inspect_link
from src.domains.parent_relation.exceptions import (
    LinkValidationError,
    ParentRelationError,
)
from src.domains.parent_relation.ids import EntityId, normalize_id, same_id
from src.domains.parent_relation.models import FetchResult, ParentStudentLink
from src.domains.parent_relation.store import RelationshipStore
from src.domains.parent_relation.validation import (
    ensure_valid_link,
    validate_link,
)

__all__ = [
    "RelationshipStore",
    "ParentStudentLink",
    "FetchResult",
    "EntityId",
    "normalize_id",
    "same_id",
    "validate_link",
    "ensure_valid_link",
    "inspect_link",
    "LinkInspection",
    "ParentRelationError",
    "LinkValidationError",
]
