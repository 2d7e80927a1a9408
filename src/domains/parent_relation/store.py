# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client-side store for parent-student links.

This module provides the RelationshipStore class for:
- Fetching links, optionally scoped to one parent
- Looking links up by student, parent or pair
- Creating, replacing and deleting links

The backend is authoritative. The store keeps an in-memory cache that is
rebuilt on every successful fetch and patched after local writes. Read
failures degrade to the cached snapshot; write failures propagate so the
caller can tell the user.

The backend has no update endpoint for links, so changing a student's
parent is a delete of the old link (by its own id) followed by a create.
The two steps are not transactional: if the create fails the student is
left without a parent link.

Example:
    >>> store = RelationshipStore(client)
    >>> await store.list()
    >>> await store.set_link(student_id="200", parent_id="300")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from src.domains.parent_relation.diagnostics import inspect_link
from src.domains.parent_relation.exceptions import LinkValidationError
from src.domains.parent_relation.ids import (
    EntityId,
    is_placeholder_id,
    same_id,
    try_normalize_id,
)
from src.domains.parent_relation.models import (
    DEFAULT_RELATIONSHIP_TYPE,
    TEMPORARY_ID_PREFIX,
    FetchResult,
    ParentStudentLink,
)
from src.domains.parent_relation.validation import (
    MISSING,
    ensure_valid_id,
    ensure_valid_link,
    read_field,
    validate_link,
)
from src.infrastructure.http.client import PortalApiClient
from src.infrastructure.http.exceptions import ResourceNotFoundError, TransportError
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

PARENT_STUDENTS_PATH = "/parent/parent-students"
STUDENTS_PATH = "/students"


class RelationshipStore:
    """Cache and reconciliation logic for parent-student links.

    One store per screen or session; the cache is never shared between
    instances.

    Attributes:
        client: Portal API client used for all network calls.
    """

    def __init__(self, client: PortalApiClient) -> None:
        """Initialize the store with an empty cache.

        Args:
            client: Portal API client.
        """
        self.client = client
        self._links: list[ParentStudentLink] = []
        self._loaded = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch(self, parent_id: Any = None) -> FetchResult:
        """Fetch links from the backend.

        Args:
            parent_id: Optional parent to scope the fetch to.

        Returns:
            FetchResult with fresh links, or with the cached snapshot and
            the error when the backend could not be reached.

        Raises:
            LinkValidationError: If parent_id is given but is not a usable
                identifier (a placeholder string, a boolean, a container).
        """
        scope = self._scope(parent_id)
        path = f"{PARENT_STUDENTS_PATH}/{scope}" if scope else PARENT_STUDENTS_PATH

        logger.debug("Fetching parent-student links from %s", path)
        try:
            payload = await self.client.get(path)
        except TransportError as e:
            logger.error("Error fetching parent-student links from %s: %s", path, e)
            return FetchResult(
                links=self._cached(scope),
                error=e,
                from_cache=self._loaded,
            )

        links = self._parse_links(payload)
        self._merge(scope, links)
        logger.info("Fetched %d parent-student links from %s", len(links), path)
        return FetchResult(links=list(links))

    async def list(self, parent_id: Any = None) -> list[ParentStudentLink]:
        """List links, falling back to the cache on transport failure.

        Args:
            parent_id: Optional parent to scope the listing to.

        Returns:
            Links with string-normalized identifiers. Never raises for
            transport failures.
        """
        result = await self.fetch(parent_id)
        return result.links

    def find_for_student(self, student_id: Any) -> ParentStudentLink | None:
        """Find the cached link for a student.

        Args:
            student_id: Student identifier, string or number.

        Returns:
            The first cached link for the student, or None.
        """
        student = EntityId.of(student_id)
        if student is None:
            return None
        return next((link for link in self._links if link.student_id == student), None)

    def find(self, parent_id: Any, student_id: Any) -> ParentStudentLink | None:
        """Find the cached link joining a parent and a student."""
        parent = EntityId.of(parent_id)
        student = EntityId.of(student_id)
        if parent is None or student is None:
            return None
        return next((link for link in self._links if link.matches(parent, student)), None)

    def links_for_parent(self, parent_id: Any) -> list[ParentStudentLink]:
        """List cached links for a parent."""
        parent = EntityId.of(parent_id)
        return [link for link in self._links if parent and link.parent_id == parent]

    def links_for_student(self, student_id: Any) -> list[ParentStudentLink]:
        """List cached links for a student."""
        student = EntityId.of(student_id)
        return [link for link in self._links if student and link.student_id == student]

    def snapshot(self) -> list[ParentStudentLink]:
        """Return a copy of the cache."""
        return list(self._links)

    async def get_linked_student(self, parent_id: Any, student_id: Any) -> Any:
        """Fetch a student's record after checking it belongs to the parent.

        Args:
            parent_id: Parent identifier.
            student_id: Student identifier.

        Returns:
            Student payload, or None when the student is not linked to the
            parent or the backend could not be reached.

        Raises:
            LinkValidationError: If either identifier is invalid.
        """
        parent, student = ensure_valid_link({"parentId": parent_id, "studentId": student_id})

        result = await self.fetch(parent)
        if not any(same_id(link.student_id, student) for link in result.links):
            logger.warning("Student %s not found in links of parent %s", student, parent)
            return None

        try:
            return await self.client.get(f"{STUDENTS_PATH}/{student}")
        except TransportError as e:
            logger.error("Error fetching student %s for parent %s: %s", student, parent, e)
            return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, candidate: Any) -> ParentStudentLink:
        """Create a link.

        Args:
            candidate: Mapping or object with parent and student identifiers
                and an optional relationship type.

        Returns:
            The created link. If the pair is already cached, the cached link
            is returned and nothing is sent.

        Raises:
            LinkValidationError: If the candidate is malformed.
            TransportError: If the backend rejects or cannot take the write.
        """
        inspect_link(candidate, source="create")
        parent, student = ensure_valid_link(candidate)
        relationship_type = self._relationship_type(candidate)

        existing = self.find(parent, student)
        if existing is not None:
            logger.info(
                "Parent %s already linked to student %s (link %s)",
                parent,
                student,
                existing.id,
            )
            return existing

        payload = ParentStudentLink(
            parent_id=parent,
            student_id=student,
            relationship_type=relationship_type,
        ).to_payload()

        with bound_contextvars(parent_id=parent, student_id=student):
            try:
                response = await self.client.post(PARENT_STUDENTS_PATH, json=payload)
            except TransportError as e:
                logger.error(
                    "Error creating link between parent %s and student %s: %s",
                    parent,
                    student,
                    e,
                )
                raise
            link = self._link_from_response(response, payload)
            self._links.append(link)
            logger.info(
                "Created parent-student link %s: parent=%s, student=%s",
                link.id,
                parent,
                student,
            )
        return link

    async def delete(self, link_id: Any) -> None:
        """Delete a link by its backend id.

        A 404 counts as success: the link is absent either way.

        Args:
            link_id: Backend identifier of the link.

        Raises:
            LinkValidationError: If link_id is missing or invalid.
            TransportError: For any failure other than 404.
        """
        target = ensure_valid_id(link_id, "link")

        with bound_contextvars(link_id=target):
            if target.startswith(TEMPORARY_ID_PREFIX):
                persisted = await self._resolve_temporary(target)
                self._discard(target)
                if persisted is None:
                    return
                target = persisted

            try:
                await self.client.delete(f"{PARENT_STUDENTS_PATH}/{target}")
            except ResourceNotFoundError:
                logger.info("Link %s already absent on the server", target)
            self._discard(target)
            logger.info("Deleted parent-student link %s", target)

    async def replace(
        self,
        student_id: Any,
        old_parent_id: Any,
        new_parent_id: Any,
    ) -> ParentStudentLink | None:
        """Move a student from one parent to another.

        Unchanged parents are a no-op. Otherwise the old link is deleted
        (failures are logged and do not stop the create) and then the new
        link is created.

        Args:
            student_id: Student identifier.
            old_parent_id: Currently linked parent, or None.
            new_parent_id: Parent to link, or None to unassign.

        Returns:
            The new link, or None when nothing was created.

        Raises:
            LinkValidationError: If student_id or new_parent_id is invalid.
            TransportError: If creating the new link fails.
        """
        student = ensure_valid_id(student_id, "student")
        old = try_normalize_id(old_parent_id) or None
        new = try_normalize_id(new_parent_id) or None

        if old == new:
            logger.debug("Parent of student %s unchanged (%s); nothing to do", student, old)
            return None

        if old is not None and is_placeholder_id(old):
            logger.warning("Ignoring placeholder old parent id %r for student %s", old, student)
            old = None

        with bound_contextvars(student_id=student, old_parent_id=old, new_parent_id=new):
            if old is not None:
                current = self.find(old, student)
                if current is None or not current.id:
                    logger.warning(
                        "No cached link between parent %s and student %s to delete",
                        old,
                        student,
                    )
                else:
                    try:
                        await self.delete(current.id)
                    except TransportError as e:
                        logger.error(
                            "Failed to delete link %s (parent %s, student %s); continuing: %s",
                            current.id,
                            old,
                            student,
                            e,
                        )

            if new is None:
                return None
            return await self.create({"parentId": new, "studentId": student})

    async def set_link(self, student_id: Any, parent_id: Any) -> ParentStudentLink | None:
        """Make parent_id the student's only tracked parent.

        Args:
            student_id: Student identifier.
            parent_id: Parent to assign, or None to unassign.

        Returns:
            The new link, or None when nothing was created.
        """
        current = self.find_for_student(student_id)
        old = current.parent_id if current else None
        return await self.replace(student_id, old, parent_id)

    async def remove(self, parent_id: Any, student_id: Any) -> bool:
        """Delete the link joining a parent and a student.

        The cache is refreshed first so the link id is current.

        Args:
            parent_id: Parent identifier.
            student_id: Student identifier.

        Returns:
            True if a link was deleted, False if none existed.

        Raises:
            LinkValidationError: If either identifier is invalid.
            TransportError: If the delete fails for a reason other than 404.
        """
        parent, student = ensure_valid_link({"parentId": parent_id, "studentId": student_id})

        await self.fetch()
        link = self.find(parent, student)
        if link is None or not link.id:
            logger.warning("Could not find link between parent %s and student %s", parent, student)
            return False

        await self.delete(link.id)
        return True

    async def unlink_student(self, student_id: Any) -> int:
        """Delete every cached link of a student, e.g. before deleting it.

        Args:
            student_id: Student identifier.

        Returns:
            Number of links deleted.

        Raises:
            LinkValidationError: If student_id is invalid.
            TransportError: If a delete fails for a reason other than 404.
        """
        student = ensure_valid_id(student_id, "student")
        links = [link for link in self.links_for_student(student) if link.id]
        for link in links:
            await self.delete(link.id)
        logger.info("Removed %d links of student %s", len(links), student)
        return len(links)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _scope(parent_id: Any) -> str | None:
        """Normalize the optional parent scope of a fetch.

        None and blank strings mean unscoped; anything else must be a
        usable identifier.
        """
        if parent_id is None or (isinstance(parent_id, str) and not parent_id.strip()):
            return None
        scope = EntityId.of(parent_id)
        if scope is None:
            raise LinkValidationError("Invalid parent ID value")
        return str(scope)

    @staticmethod
    def _relationship_type(candidate: Any) -> str:
        value = read_field(candidate, "relationshipType", "relationship_type")
        if value is MISSING or value is None or not str(value).strip():
            return DEFAULT_RELATIONSHIP_TYPE
        return str(value).strip()

    def _cached(self, scope: str | None) -> list[ParentStudentLink]:
        if scope is None:
            return list(self._links)
        return self.links_for_parent(scope)

    def _merge(self, scope: str | None, links: list[ParentStudentLink]) -> None:
        """Replace the cache, or only one parent's slice of it."""
        if scope is None:
            self._links = list(links)
        else:
            others = [link for link in self._links if link.parent_id != scope]
            self._links = others + list(links)
        self._loaded = True

    def _discard(self, link_id: str) -> None:
        self._links = [link for link in self._links if link.id != link_id]

    def _parse_links(self, payload: Any) -> list[ParentStudentLink]:
        """Turn a list payload into links, dropping malformed records."""
        if not isinstance(payload, list):
            logger.warning(
                "Expected a list of parent-student links, got %s",
                type(payload).__name__,
            )
            return []

        links: list[ParentStudentLink] = []
        seen: set[tuple[str, str]] = set()
        for record in payload:
            if not isinstance(record, Mapping):
                logger.warning("Dropping non-object parent-student link record: %r", record)
                continue

            reason = validate_link(record)
            if reason:
                logger.warning(
                    "Dropping invalid parent-student link %s: %s",
                    record.get("id"),
                    reason,
                )
                continue

            try:
                link = ParentStudentLink.model_validate(record)
            except ValidationError as e:
                logger.warning(
                    "Dropping malformed parent-student link %s: %s",
                    record.get("id"),
                    e.errors()[0]["msg"] if e.errors() else e,
                )
                continue

            if link.has_null_reference:
                logger.warning("Link %s has a null parent or student reference", link.id)

            pair = (link.parent_id, link.student_id)
            if pair in seen:
                logger.warning(
                    "Backend returned more than one link for parent %s and student %s",
                    *pair,
                )
            seen.add(pair)
            links.append(link)
        return links

    def _link_from_response(self, response: Any, payload: dict[str, str]) -> ParentStudentLink:
        """Build the cached record for a created link.

        Falls back to a temporary id when the backend returns no usable
        record, so the cache still reflects the write.
        """
        if isinstance(response, Mapping):
            data = response.get("data")
            if isinstance(data, Mapping):
                response = data
            record = {**payload, **{k: v for k, v in response.items() if v is not None}}
            if validate_link(record) is None:
                try:
                    link = ParentStudentLink.model_validate(record)
                except ValidationError:
                    link = None
                if link is not None and link.id:
                    return link

        logger.warning(
            "Create response for parent %s and student %s carried no link id; "
            "caching a temporary record",
            payload["parentId"],
            payload["studentId"],
        )
        return ParentStudentLink(
            id=f"{TEMPORARY_ID_PREFIX}{uuid4().hex}",
            parent_id=payload["parentId"],
            student_id=payload["studentId"],
            relationship_type=payload.get("relationshipType", DEFAULT_RELATIONSHIP_TYPE),
            created_at=utc_now(),
        )

    async def _resolve_temporary(self, link_id: str) -> str | None:
        """Find the backend id behind a temporary link.

        Returns:
            The persisted id, or None if the backend has no such link.

        Raises:
            TransportError: If the backend could not be asked.
        """
        temporary = next((link for link in self._links if link.id == link_id), None)
        if temporary is None:
            return None

        result = await self.fetch(temporary.parent_id)
        if not result.ok:
            raise result.error
        persisted = next(
            (
                link
                for link in result.links
                if link.matches(temporary.parent_id, temporary.student_id)
                and link.id
                and not link.is_temporary
            ),
            None,
        )
        return persisted.id if persisted else None
