# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data models for parent-student links.

The backend speaks camelCase JSON (``parentId``, ``studentId``,
``relationshipType``, ``createdAt``). Models accept either camelCase or
snake_case and dump camelCase with by_alias=True. Identifiers are
normalized to strings on the way in.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from src.domains.parent_relation.ids import normalize_id, same_id
from src.infrastructure.http.exceptions import TransportError
from src.utils.datetime import ensure_utc, parse_iso

logger = logging.getLogger(__name__)

DEFAULT_RELATIONSHIP_TYPE = "parent"
TEMPORARY_ID_PREFIX = "tmp-"


class ParentStudentLink(BaseModel):
    """A parent-student relationship record.

    Attributes:
        id: Backend identifier; None until persisted, ``tmp-`` prefixed when
            synthesized locally.
        parent_id: Parent identifier.
        student_id: Student identifier.
        relationship_type: Free-text classification ("parent", "guardian").
        created_at: Backend creation timestamp.
        parent: Embedded parent payload, when the backend includes it.
        student: Embedded student payload, when the backend includes it.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str | None = None
    parent_id: str
    student_id: str
    relationship_type: str = DEFAULT_RELATIONSHIP_TYPE
    created_at: datetime | None = None
    parent: Any = None
    student: Any = None

    @field_validator("id", "parent_id", "student_id", mode="before")
    @classmethod
    def normalize_identifier(cls, value: Any) -> str | None:
        """Coerce identifiers to canonical strings."""
        try:
            return normalize_id(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("relationship_type", mode="before")
    @classmethod
    def default_relationship_type(cls, value: Any) -> str:
        """Fall back to "parent" for empty relationship types."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_RELATIONSHIP_TYPE
        return str(value).strip()

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, value: Any) -> datetime | None:
        """Parse backend timestamps, dropping ones that cannot be read."""
        if value is None or isinstance(value, datetime):
            return ensure_utc(value)
        if isinstance(value, str):
            try:
                return parse_iso(value)
            except ValueError:
                logger.debug("Ignoring unparseable createdAt value: %r", value)
                return None
        return None

    @property
    def is_temporary(self) -> bool:
        """Check whether the id was synthesized locally."""
        return bool(self.id) and self.id.startswith(TEMPORARY_ID_PREFIX)

    @property
    def has_null_reference(self) -> bool:
        """Check whether the backend sent an explicit null parent or student."""
        return any(
            name in self.model_fields_set and getattr(self, name) is None
            for name in ("parent", "student")
        )

    def matches(self, parent_id: Any, student_id: Any) -> bool:
        """Check whether this link joins the given pair, in any id form."""
        return same_id(self.parent_id, parent_id) and same_id(self.student_id, student_id)

    def to_payload(self) -> dict[str, str]:
        """Build the POST body for this link."""
        payload = {"parentId": self.parent_id, "studentId": self.student_id}
        if self.relationship_type != DEFAULT_RELATIONSHIP_TYPE:
            payload["relationshipType"] = self.relationship_type
        return payload


@dataclass
class FetchResult:
    """Outcome of a link fetch.

    The caller decides what to render when ok is False; links then hold
    the last good snapshot (or nothing).

    Attributes:
        links: Links returned by the backend or taken from the cache.
        error: Transport error that prevented a fresh fetch.
        from_cache: Whether links came from the cache.
    """

    links: list[ParentStudentLink]
    error: TransportError | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        """Check whether the fetch reached the backend."""
        return self.error is None
