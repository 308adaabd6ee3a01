# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the animal rescue case platform.
"""

import math
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from .base import BaseEntity, generate_object_id
from .enums import (
    CaseType,
    CaseSeverity,
    CaseStatus,
    UserRole,
    OPERATIONAL_CASE_TYPES
)


class Case(BaseEntity):
    """A reported welfare incident or adoption listing."""

    title: str = Field(..., min_length=1, max_length=200, description="Case title")
    description: str = Field(..., min_length=1, max_length=5000, description="Case description")
    kind: CaseType = Field(..., description="Case kind")
    severity: Optional[CaseSeverity] = Field(None, description="Severity, absent for adoptions")
    status: CaseStatus = Field(default=CaseStatus.REPORTED, description="Lifecycle status")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    reported_by: str = Field(..., description="User ID of the reporting citizen")
    assigned_ngo_id: Optional[str] = Field(None, description="NGO profile ID holding the claim")
    animal_type: Optional[str] = Field(None, max_length=100, description="Animal species or type")
    animal_count: Optional[int] = Field(None, ge=0, description="Number of animals involved")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    image_url: Optional[str] = Field(None, description="Reference to the case image")

    @field_validator('latitude', 'longitude')
    @classmethod
    def validate_finite(cls, v):
        """Coordinates must be finite numbers."""
        if not math.isfinite(v):
            raise ValueError('Coordinates must be finite numbers')
        return v

    @model_validator(mode='after')
    def validate_severity_for_kind(self):
        """Adoptions never carry a severity; operational cases always do."""
        if self.kind == CaseType.ADOPTION and self.severity is not None:
            raise ValueError('Adoption cases cannot carry a severity')
        if self.kind != CaseType.ADOPTION and self.severity is None:
            raise ValueError('Severity is required for operational cases')
        return self

    def is_operational(self) -> bool:
        """Check if case belongs to the operational set used by matching."""
        return self.kind in OPERATIONAL_CASE_TYPES

    def is_adoption(self) -> bool:
        return self.kind == CaseType.ADOPTION

    def is_assigned(self) -> bool:
        """Check if an NGO currently holds the case."""
        return self.assigned_ngo_id is not None


class NgoProfile(BaseModel):
    """Rescue organization profile attached to an NGO user."""

    id: str = Field(default_factory=generate_object_id, description="Profile identifier")
    user_id: str = Field(..., description="Owning user ID")
    organization_name: Optional[str] = Field(None, max_length=200, description="Organization name")
    verified: bool = Field(default=False, description="Whether the NGO has been verified")


class User(BaseEntity):
    """Platform account."""

    email: str = Field(..., description="User email address")
    name: str = Field(..., min_length=1, max_length=200, description="User full name")
    role: UserRole = Field(default=UserRole.CITIZEN, description="Account role")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        import re
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, v.lower()):
            raise ValueError('Invalid email format')
        return v.lower()

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate user name."""
        if not v.strip():
            raise ValueError('User name cannot be empty')
        return v.strip()


class NgoContact(BaseModel):
    """Public contact identity of an NGO: the profile plus its user."""

    ngo_profile_id: str = Field(..., description="NGO profile ID")
    user_id: str = Field(..., description="NGO user ID")
    name: str = Field(..., description="NGO user display name")
    email: str = Field(..., description="NGO user email")


class UserContext(BaseModel):
    """Authenticated principal as seen by the case core."""

    user_id: str = Field(..., description="Authenticated user ID")
    role: UserRole = Field(..., description="Account role")
    email: Optional[str] = Field(None, description="User email")
    name: Optional[str] = Field(None, description="User display name")
    ngo_profile: Optional[NgoProfile] = Field(None, description="NGO profile, NGO role only")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")

    model_config = ConfigDict(
        populate_by_name=True
    )

    def is_ngo(self) -> bool:
        """Check if principal has the NGO role."""
        return self.role == UserRole.NGO

    @property
    def ngo_profile_id(self) -> Optional[str]:
        return self.ngo_profile.id if self.ngo_profile else None


__all__ = [
    'Case',
    'NgoProfile',
    'User',
    'NgoContact',
    'UserContext',
]
