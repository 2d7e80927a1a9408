# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the portal API client.

This module defines the exception hierarchy for portal API calls:
- PortalAPIError: Base exception for all portal API errors
- TransportError: Network failure or non-2xx response
- AuthorizationError: 403 that survived the role-escalation retry
- ResourceNotFoundError: 404 from the backend
"""


class PortalAPIError(Exception):
    """Base exception for all portal API errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        """Initialize portal API error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class TransportError(PortalAPIError):
    """Request did not produce a usable response.

    Raised when the backend is unreachable (status_code is None) or
    answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code from the response, if any.
        response_body: Raw response body if available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        """Initialize transport error.

        Args:
            message: Human-readable error description.
            status_code: HTTP status code from the response.
            response_body: Raw response body if available.
            details: Optional dictionary with additional error context.
        """
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = f"{self.message}"
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base


class AuthorizationError(TransportError):
    """The backend refused the request even after role escalation."""

    pass


class ResourceNotFoundError(TransportError):
    """The requested resource does not exist on the backend."""

    pass
