# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential holder for the portal API client.

The bearer token and user role are held in one explicit object that is
handed to the HTTP client at startup. The login flow writes into it through
refresh(); the client reads it on every request.

Example:
    >>> credentials = CredentialStore.from_settings(get_settings().auth)
    >>> credentials.refresh(token="Bearer eyJ...", user_role="admin")
    True
"""

import logging
import re
from dataclasses import dataclass

from src.core.config.settings import AuthSettings

logger = logging.getLogger(__name__)

_BEARER_PREFIX = re.compile(r"^\s*bearer\s+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def clean_token(token: str | None) -> str | None:
    """Strip a leading "Bearer " and any whitespace from a raw token.

    Args:
        token: Raw token as stored or pasted.

    Returns:
        Cleaned token, or None if nothing is left.
    """
    if token is None:
        return None
    cleaned = _WHITESPACE.sub("", _BEARER_PREFIX.sub("", token))
    return cleaned or None


def looks_like_jwt(token: str) -> bool:
    """Check that a token has the header.payload.signature shape."""
    parts = token.split(".")
    return len(parts) == 3 and all(parts)


@dataclass
class CredentialStore:
    """Token and role used to authorize portal API requests.

    Attributes:
        token: Bearer token, already cleaned.
        user_role: Role sent in the role header.
        user_id: Identifier of the signed-in user.
    """

    token: str | None = None
    user_role: str | None = None
    user_id: str | None = None

    def __post_init__(self) -> None:
        self.token = clean_token(self.token)

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "CredentialStore":
        """Build a store seeded from startup settings.

        Args:
            settings: Auth settings section.

        Returns:
            New credential store.
        """
        token = settings.token.get_secret_value() if settings.token else None
        return cls(token=token, user_role=settings.user_role, user_id=settings.user_id)

    @property
    def has_token(self) -> bool:
        """Check whether a bearer token is held."""
        return bool(self.token)

    def refresh(
        self,
        token: str | None = None,
        user_role: str | None = None,
        user_id: str | None = None,
    ) -> bool:
        """Replace the held credentials.

        Arguments left as None keep their current value.

        Args:
            token: New raw token.
            user_role: New role.
            user_id: New user identifier.

        Returns:
            True if a token is held after the refresh.
        """
        if token is not None:
            cleaned = clean_token(token)
            if cleaned and not looks_like_jwt(cleaned):
                logger.warning("Token does not have three parts (header.payload.signature)")
            self.token = cleaned
        if user_role is not None:
            self.user_role = user_role
        if user_id is not None:
            self.user_id = user_id

        if not self.has_token:
            logger.info("No token held after credential refresh")
        return self.has_token

    def clear(self) -> None:
        """Forget the token, role and user."""
        self.token = None
        self.user_role = None
        self.user_id = None

    def auth_headers(self, role_header: str = "X-User-Role") -> dict[str, str]:
        """Build the authorization headers for a request.

        Args:
            role_header: Header name carrying the role.

        Returns:
            Dictionary of HTTP headers, empty when nothing is held.
        """
        headers: dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.user_role:
            headers[role_header] = self.user_role
        return headers
