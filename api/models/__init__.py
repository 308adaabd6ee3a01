# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the animal rescue case API.
"""

# Base models
from .base import BaseEntity, BaseCommand

# Enumerations
from .enums import (
    CaseType,
    CaseSeverity,
    CaseStatus,
    UserRole,
    OPERATIONAL_CASE_TYPES
)

# Core entities
from .entities import (
    Case,
    NgoProfile,
    User,
    NgoContact,
    UserContext
)

# Request models
from .requests import (
    ReportCaseCommand,
    ReportAdoptionCommand,
    CasePatch,
    StatusChangeRequest,
    NearbyCasesQuery,
    CasePath,
    parse_command
)

# Response models
from .responses import (
    HalLink,
    AssignedNgo,
    CaseResponse,
    HealthCheckResponse,
    ErrorResponse
)

__all__ = [
    # Base models
    "BaseEntity",
    "BaseCommand",

    # Enumerations
    "CaseType",
    "CaseSeverity",
    "CaseStatus",
    "UserRole",
    "OPERATIONAL_CASE_TYPES",

    # Core entities
    "Case",
    "NgoProfile",
    "User",
    "NgoContact",
    "UserContext",

    # Request models
    "ReportCaseCommand",
    "ReportAdoptionCommand",
    "CasePatch",
    "StatusChangeRequest",
    "NearbyCasesQuery",
    "CasePath",
    "parse_command",

    # Response models
    "HalLink",
    "AssignedNgo",
    "CaseResponse",
    "HealthCheckResponse",
    "ErrorResponse"
]
