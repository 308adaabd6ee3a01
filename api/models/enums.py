# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the animal rescue case platform.
"""

from enum import Enum


class CaseType(str, Enum):
    """Kind of reported case."""
    INJURED = "INJURED"
    ABUSE = "ABUSE"
    ADOPTION = "ADOPTION"


class CaseSeverity(str, Enum):
    """Urgency of an operational case."""
    CRITICAL = "Critical"
    URGENT = "Urgent"
    MODERATE = "Moderate"
    LOW = "Low"


class CaseStatus(str, Enum):
    """Case lifecycle status."""
    REPORTED = "Reported"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class UserRole(str, Enum):
    """Account role."""
    CITIZEN = "Citizen"
    NGO = "NGO"


# Kinds considered by NGO matching and the general case listing
OPERATIONAL_CASE_TYPES = frozenset({CaseType.INJURED, CaseType.ABUSE})
