# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for the parent-student relation domain."""


class ParentRelationError(Exception):
    """Base exception for parent relation errors."""

    pass


class LinkValidationError(ParentRelationError, ValueError):
    """Raised when a link candidate has a missing or invalid identifier.

    Never sent to the network; indicates a caller programming error.

    Attributes:
        reason: Short human-readable reason naming the offending field.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
