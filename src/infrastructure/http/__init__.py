# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP transport for the portal REST API.

Exports the async client, its credential holder, the 403 escalation
policy and the transport error hierarchy.
"""

from src.infrastructure.http.client import PortalApiClient
from src.infrastructure.http.credentials import CredentialStore, clean_token
from src.infrastructure.http.exceptions import (
    AuthorizationError,
    PortalAPIError,
    ResourceNotFoundError,
    TransportError,
)
from src.infrastructure.http.role_escalation import RoleEscalationPolicy

__all__ = [
    "PortalApiClient",
    "CredentialStore",
    "clean_token",
    "RoleEscalationPolicy",
    "PortalAPIError",
    "TransportError",
    "AuthorizationError",
    "ResourceNotFoundError",
]
