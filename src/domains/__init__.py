# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain layer for the EduPortal client.

Domains:
    parent_relation: Parent-student link validation and reconciliation.
"""
