# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request normalization for API endpoints.

Raw request bodies are loosely typed (tags as CSV, a JSON string or a list;
numbers as strings; ``lat``/``lng`` shorthands). The models here coerce them
once into strictly typed commands before anything reaches the case core.
"""

import json
from typing import Any, Dict, List, Optional, Type, TypeVar
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from .base import BaseCommand
from .enums import CaseSeverity, CaseType, OPERATIONAL_CASE_TYPES
from domain.exceptions import InvalidArgument

C = TypeVar('C', bound=BaseCommand)

# Fields a patch may clear by sending an explicit null
NULLABLE_PATCH_FIELDS = {'severity', 'animal_type', 'animal_count', 'image_url'}


def normalize_tags(value: Any) -> List[str]:
    """
    Normalize tags given as a list, a JSON array string or a comma-separated string.

    Args:
        value: Raw tags value from the request

    Returns:
        List of non-empty tag strings
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [tag.strip() for tag in value.split(',') if tag.strip()]
        if isinstance(parsed, list):
            return [str(tag).strip() for tag in parsed if str(tag).strip()]
        return []
    return []


def _coerce_count(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _apply_shorthands(data: Any) -> Any:
    """Map ``lat``/``lng``/``type`` request keys onto the command fields."""
    if not isinstance(data, dict):
        return data
    data = dict(data)
    if 'latitude' not in data and 'lat' in data:
        data['latitude'] = data.pop('lat')
    if 'longitude' not in data and 'lng' in data:
        data['longitude'] = data.pop('lng')
    if 'kind' not in data and 'type' in data:
        data['kind'] = data.pop('type')
    return data


def parse_command(model: Type[C], payload: Optional[Dict[str, Any]]) -> C:
    """
    Validate a raw payload into a command, raising the domain error on failure.

    Args:
        model: Command model class
        payload: Raw request data

    Returns:
        Validated command instance

    Raises:
        InvalidArgument: If the payload does not validate
    """
    try:
        return model.model_validate(payload or {})
    except ValidationError as e:
        errors = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", ())),
                "message": err.get("msg"),
            }
            for err in e.errors()
        ]
        raise InvalidArgument("Request validation failed", errors=errors) from e


class ReportAdoptionCommand(BaseCommand):
    """Command for listing an animal for adoption."""

    title: str = Field(..., min_length=1, max_length=200, description="Listing title")
    description: str = Field(..., min_length=1, max_length=5000, description="Listing description")
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Latitude")
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Longitude")
    animal_type: Optional[str] = Field(None, max_length=100, description="Animal species or type")
    animal_count: Optional[int] = Field(None, ge=0, description="Number of animals")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    image_url: Optional[str] = Field(None, description="Reference to an already stored image")

    @model_validator(mode='before')
    @classmethod
    def apply_shorthands(cls, data):
        return _apply_shorthands(data)

    @field_validator('tags', mode='before')
    @classmethod
    def validate_tags(cls, v):
        """Accept list, JSON or CSV tags."""
        return normalize_tags(v)

    @field_validator('animal_count', mode='before')
    @classmethod
    def validate_animal_count(cls, v):
        return _coerce_count(v)


class ReportCaseCommand(ReportAdoptionCommand):
    """Command for reporting an injured or abused animal."""

    kind: CaseType = Field(..., description="Case kind")
    severity: CaseSeverity = Field(..., description="Case severity")

    @field_validator('kind')
    @classmethod
    def validate_kind(cls, v):
        """Adoptions are listed through the adoption path."""
        if v not in OPERATIONAL_CASE_TYPES:
            raise ValueError('Use the adoption path to list animals for adoption')
        return v


class CasePatch(BaseCommand):
    """Partial update of a case's descriptive fields."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    kind: Optional[CaseType] = Field(None)
    severity: Optional[CaseSeverity] = Field(None)
    latitude: Optional[float] = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(None, ge=-180, le=180, allow_inf_nan=False)
    animal_type: Optional[str] = Field(None, max_length=100)
    animal_count: Optional[int] = Field(None, ge=0)
    tags: Optional[List[str]] = Field(None)
    image_url: Optional[str] = Field(None)

    @model_validator(mode='before')
    @classmethod
    def apply_shorthands(cls, data):
        return _apply_shorthands(data)

    @field_validator('tags', mode='before')
    @classmethod
    def validate_tags(cls, v):
        if v is None:
            return None
        return normalize_tags(v)

    @field_validator('animal_count', mode='before')
    @classmethod
    def validate_animal_count(cls, v):
        return _coerce_count(v)

    def to_changes(self) -> Dict[str, Any]:
        """Fields explicitly provided, minus nulls on fields that cannot be cleared."""
        changes = self.model_dump(exclude_unset=True)
        return {
            field: value for field, value in changes.items()
            if value is not None or field in NULLABLE_PATCH_FIELDS
        }


class StatusChangeRequest(BaseCommand):
    """Body of the NGO status endpoint; no status means claim."""

    status: Optional[str] = Field(None, description="Requested case status")

    @field_validator('status')
    @classmethod
    def blank_status_is_claim(cls, v):
        return v or None


class NearbyCasesQuery(BaseCommand):
    """Query parameters of the nearby-cases endpoint."""

    lat: float = Field(..., description="Origin latitude")
    lng: float = Field(..., description="Origin longitude")
    radius_km: Optional[float] = Field(None, description="Search radius in kilometres")


class CasePath(BaseModel):
    """Path parameters of single-case endpoints."""

    case_id: str = Field(..., min_length=1, description="Case ID")
