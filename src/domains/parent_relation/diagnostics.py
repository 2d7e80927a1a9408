# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Field-by-field inspection of link candidates.

validate_link() stops at the first problem; inspect_link() reports the
state of both identifiers so logs show everything wrong with a candidate
coming from a form.
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.domains.parent_relation.validation import (
    MISSING,
    is_invalid,
    is_missing,
    read_field,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkInspection:
    """Inspection report for one candidate."""

    source: str
    has_parent_id: bool
    parent_id_valid: bool
    has_student_id: bool
    student_id_valid: bool

    @property
    def is_valid(self) -> bool:
        return self.parent_id_valid and self.student_id_valid

    @property
    def problems(self) -> list[str]:
        problems = []
        if not self.parent_id_valid:
            problems.append("parent ID absent" if not self.has_parent_id else "parent ID invalid")
        if not self.student_id_valid:
            problems.append("student ID absent" if not self.has_student_id else "student ID invalid")
        return problems


def inspect_link(candidate: Any, source: str = "unknown") -> LinkInspection:
    """Inspect a link candidate and log what is wrong with it.

    Args:
        candidate: Mapping or object with parent and student identifiers.
        source: Name of the caller, included in the log lines.

    Returns:
        Inspection report. Never raises.
    """
    if candidate is None:
        logger.warning("Link candidate from %s is missing entirely", source)
        return LinkInspection(source, False, False, False, False)

    parent_id = read_field(candidate, "parentId", "parent_id")
    student_id = read_field(candidate, "studentId", "student_id")

    inspection = LinkInspection(
        source=source,
        has_parent_id=parent_id is not MISSING,
        parent_id_valid=not is_missing(parent_id) and not is_invalid(parent_id),
        has_student_id=student_id is not MISSING,
        student_id_valid=not is_missing(student_id) and not is_invalid(student_id),
    )

    logger.debug(
        "Inspected link candidate from %s: parent=%r (valid=%s), student=%r (valid=%s)",
        source,
        None if parent_id is MISSING else parent_id,
        inspection.parent_id_valid,
        None if student_id is MISSING else student_id,
        inspection.student_id_valid,
    )
    for problem in inspection.problems:
        logger.warning("Invalid link candidate from %s: %s", source, problem)

    return inspection
