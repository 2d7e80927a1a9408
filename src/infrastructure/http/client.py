# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async HTTP client for the portal REST API.

The client handles:
- Bearer token and role headers, read from a CredentialStore per request
- One escalated retry on 403 (see RoleEscalationPolicy)
- JSON decoding of response bodies
- Classification of failures into the TransportError hierarchy

Example:
    async with PortalApiClient.from_settings() as client:
        links = await client.get("/parent/parent-students")
"""

import logging
from typing import Any

import httpx

from src.core.config.settings import Settings, get_settings
from src.infrastructure.http.credentials import CredentialStore
from src.infrastructure.http.exceptions import (
    AuthorizationError,
    ResourceNotFoundError,
    TransportError,
)
from src.infrastructure.http.role_escalation import RoleEscalationPolicy

logger = logging.getLogger(__name__)


class PortalApiClient:
    """Async HTTP client for the portal REST API.

    Attributes:
        base_url: Base URL of the portal backend.
        credentials: Token and role used for every request.
        role_policy: Escalation policy applied to 403 responses.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore | None = None,
        timeout: float = 30.0,
        role_policy: RoleEscalationPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the portal client.

        Args:
            base_url: Base URL of the portal backend.
            credentials: Credential store; an empty one is used if omitted.
            timeout: Request timeout in seconds.
            role_policy: 403 escalation policy; defaults to one retry as admin.
            transport: Optional httpx transport, used by tests.
        """
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials or CredentialStore()
        self.role_policy = role_policy or RoleEscalationPolicy()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        credentials: CredentialStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "PortalApiClient":
        """Build a client from application settings.

        Args:
            settings: Settings to use; the cached settings if omitted.
            credentials: Credential store; seeded from settings if omitted.
            transport: Optional httpx transport.

        Returns:
            Configured client.
        """
        settings = settings or get_settings()
        api = settings.portal_api
        return cls(
            base_url=api.base_url,
            credentials=credentials or CredentialStore.from_settings(settings.auth),
            timeout=api.timeout,
            role_policy=RoleEscalationPolicy(
                elevated_role=api.elevated_role,
                role_header=api.role_header,
                max_retries=api.max_role_retries,
                persist_role=api.persist_elevated_role,
            ),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "PortalApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request and return the decoded body."""
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        """Send a POST request and return the decoded body."""
        return await self.request("POST", path, json=json)

    async def delete(self, path: str) -> Any:
        """Send a DELETE request and return the decoded body."""
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request to the portal API.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            json: Optional JSON body.
            params: Optional query parameters.

        Returns:
            Decoded JSON body, or None for empty and non-JSON bodies.

        Raises:
            AuthorizationError: If the request is still refused after escalation.
            ResourceNotFoundError: If the backend answers 404.
            TransportError: On network failure or any other non-2xx status.
        """
        request = self._client.build_request(
            method,
            path,
            json=json,
            params=params,
            headers=self.credentials.auth_headers(self.role_policy.role_header),
        )
        if self.credentials.has_token:
            logger.debug("API request %s %s with token", method, path)
        else:
            logger.debug("API request %s %s without token", method, path)

        response = await self._send(request)
        return self._decode(response)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Send a request, applying the escalation policy on 403."""
        attempt = 0
        while True:
            try:
                response = await self._client.send(request)
            except httpx.HTTPError as e:
                logger.error(
                    "API request %s %s failed, no response received: %s",
                    request.method,
                    request.url.path,
                    str(e),
                )
                raise TransportError(
                    message=f"Failed to reach portal API: {str(e)}",
                    details={"error_type": type(e).__name__},
                ) from e

            if self.role_policy.should_escalate(response, attempt, self.credentials):
                logger.warning(
                    "Authorization error (403) from %s; escalating role",
                    request.url.path,
                )
                request = self.role_policy.escalate(request, self.credentials)
                attempt += 1
                continue

            return self._check(request, response)

    def _check(self, request: httpx.Request, response: httpx.Response) -> httpx.Response:
        """Raise the matching error for non-2xx responses."""
        if response.is_success:
            logger.debug(
                "API response from %s: status %s",
                request.url.path,
                response.status_code,
            )
            return response

        body = response.text
        message = self._error_message(response)
        path = request.url.path

        if response.status_code == 404:
            raise ResourceNotFoundError(
                message=message,
                status_code=404,
                response_body=body,
            )

        if response.status_code == 403:
            logger.error("Authorization error (403) from %s: %s", path, body[:500])
            raise AuthorizationError(
                message=message,
                status_code=403,
                response_body=body,
            )

        if response.status_code == 401:
            logger.error(
                "Authentication error (401) from %s. Token might be invalid or expired.",
                path,
            )
        else:
            logger.error(
                "API %s %s failed: %s %s",
                request.method,
                path,
                response.status_code,
                body[:500],
            )
        raise TransportError(
            message=message,
            status_code=response.status_code,
            response_body=body,
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract an error message from an error response."""
        try:
            data = response.json()
        except ValueError:
            return response.reason_phrase or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(data.get("message") or data.get("error") or data)
        return str(data)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode a successful response body."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(
                "Response from %s is not JSON; ignoring body",
                response.request.url.path,
            )
            return None
