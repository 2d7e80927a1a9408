"""EduPortal client core.

Parent-student relationship management for the education portal:
identifier normalization, link validation, a cached relationship store
and an async REST client with bearer auth and role escalation.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
