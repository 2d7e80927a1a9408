# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Retry-with-elevated-role policy for 403 responses.

Some backend routes answer 403 unless the role is stated explicitly in
several places at once. The policy rebuilds the rejected request with the
elevated role in the role header, a ``Role`` header, a ``role`` query
parameter and, for POST/PUT JSON objects, a ``userRole`` body field.

The retry count is bounded (at most one) so a backend that keeps refusing
cannot cause a retry loop.
"""

import json
import logging
from dataclasses import dataclass

import httpx

from src.infrastructure.http.credentials import CredentialStore

logger = logging.getLogger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass(frozen=True)
class RoleEscalationPolicy:
    """Bounded role-escalation retry on 403.

    Attributes:
        elevated_role: Role to claim on the retry.
        role_header: Header carrying the role.
        max_retries: Maximum escalated retries per request (0 or 1).
        persist_role: Store the elevated role in the credentials so later
            requests carry it from the start.
    """

    elevated_role: str = "admin"
    role_header: str = "X-User-Role"
    max_retries: int = 1
    persist_role: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.max_retries <= 1:
            raise ValueError(f"max_retries must be 0 or 1, got {self.max_retries}")

    def should_escalate(
        self,
        response: httpx.Response,
        attempt: int,
        credentials: CredentialStore,
    ) -> bool:
        """Decide whether a response warrants an escalated retry.

        Args:
            response: Response just received.
            attempt: Number of escalated retries already made.
            credentials: Current credentials; escalation needs a token.

        Returns:
            True if the request should be resent with the elevated role.
        """
        return (
            response.status_code == 403
            and attempt < self.max_retries
            and credentials.has_token
        )

    def escalate(
        self,
        request: httpx.Request,
        credentials: CredentialStore,
    ) -> httpx.Request:
        """Build the escalated copy of a rejected request.

        Args:
            request: Request that was answered with 403.
            credentials: Credentials to authorize the retry.

        Returns:
            New request carrying the elevated role.
        """
        if self.persist_role:
            credentials.refresh(user_role=self.elevated_role)

        headers = httpx.Headers(request.headers)
        headers["Authorization"] = f"Bearer {credentials.token}"
        headers[self.role_header] = self.elevated_role
        headers["Role"] = self.elevated_role

        content = request.content
        if request.method in _BODY_METHODS and content:
            content = self._with_role_in_body(content, credentials)
        if "content-length" in headers:
            del headers["content-length"]

        url = request.url.copy_merge_params({"role": self.elevated_role})

        logger.info(
            "Retrying %s %s with elevated role %s",
            request.method,
            request.url.path,
            self.elevated_role,
        )
        return httpx.Request(
            request.method,
            url,
            headers=headers,
            content=content,
            extensions=request.extensions,
        )

    def _with_role_in_body(self, content: bytes, credentials: CredentialStore) -> bytes:
        """Add the elevated role to a JSON object body.

        Bodies that are not JSON objects are returned unchanged.
        """
        try:
            data = json.loads(content)
        except ValueError:
            logger.warning("Could not add role to request body: body is not JSON")
            return content
        if not isinstance(data, dict):
            return content

        data["userRole"] = self.elevated_role
        if credentials.user_id:
            data["createdBy"] = credentials.user_id
        return json.dumps(data).encode("utf-8")
