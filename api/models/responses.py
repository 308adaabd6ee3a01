# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime

from .entities import Case, NgoContact
from .enums import CaseSeverity, CaseStatus, CaseType


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class AssignedNgo(BaseModel):
    """Public identity of the NGO holding a case."""

    id: str = Field(..., description="NGO user ID")
    name: str = Field(..., description="NGO display name")
    email: str = Field(..., description="NGO contact email")


class CaseResponse(BaseModel):
    """Case as returned to API clients."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True
    )

    id: str = Field(..., description="Case ID")
    title: str = Field(..., description="Case title")
    description: str = Field(..., description="Case description")
    kind: CaseType = Field(..., alias="type", description="Case kind")
    severity: Optional[CaseSeverity] = Field(None, description="Case severity")
    status: CaseStatus = Field(..., description="Lifecycle status")
    latitude: float = Field(..., description="Latitude")
    longitude: float = Field(..., description="Longitude")
    animal_type: Optional[str] = Field(None, description="Animal species or type")
    animal_count: Optional[int] = Field(None, description="Number of animals")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    image_url: Optional[str] = Field(None, description="Image reference")
    reported_by_id: str = Field(..., description="Reporting user ID")
    assigned_ngo: Optional[AssignedNgo] = Field(None, description="NGO holding the case")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_case(cls, case: Case, ngo_contact: Optional[NgoContact] = None) -> "CaseResponse":
        """
        Build the outward representation of a case.

        Args:
            case: Canonical case
            ngo_contact: Contact of the assigned NGO, if any

        Returns:
            CaseResponse with the assigned NGO denormalized to id/name/email
        """
        assigned = None
        if case.assigned_ngo_id and ngo_contact is not None:
            assigned = AssignedNgo(
                id=ngo_contact.user_id,
                name=ngo_contact.name,
                email=ngo_contact.email
            )

        return cls(
            id=case.id,
            title=case.title,
            description=case.description,
            kind=case.kind,
            severity=case.severity,
            status=case.status,
            latitude=case.latitude,
            longitude=case.longitude,
            animal_type=case.animal_type,
            animal_count=case.animal_count,
            tags=list(case.tags),
            image_url=case.image_url,
            reported_by_id=case.reported_by,
            assigned_ngo=assigned,
            created_at=case.created_at,
            updated_at=case.updated_at
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready camelCase dictionary."""
        return self.model_dump(mode="json", by_alias=True)


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    timestamp: datetime = Field(..., description="Check timestamp")
    dependencies: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Dependency health")


class ErrorResponse(BaseModel):
    """Error response model following RFC 7807."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Error detail")
    instance: str = Field(..., description="Request instance")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Validation errors")
