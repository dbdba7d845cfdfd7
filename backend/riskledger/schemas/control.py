"""Pydantic schemas for control frameworks, controls and audit findings."""
from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

ImplementationStatus = Literal[
    "planned", "partially_implemented", "implemented", "not_implemented", "not_applicable",
]
FindingType = Literal["Major Deviation", "Minor Deviation", "Opportunity for Improvement"]
FindingStatus = Literal["Open", "In Progress", "Closed", "Accepted"]


# ═══ Frameworks ═══

class FrameworkCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    version: str | None = Field(None, max_length=50)
    description: str | None = None
    model_config = {"extra": "forbid"}


class FrameworkUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    version: str | None = Field(None, max_length=50)
    description: str | None = None
    model_config = {"extra": "forbid"}


class FrameworkOut(BaseModel):
    id: int
    name: str
    version: str | None = None
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    model_config = {"from_attributes": True}


# ═══ Controls (compliance_status is derived, never accepted as input) ═══

class FrameworkControlCreate(BaseModel):
    framework_id: int
    control_code: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=400)
    description: str | None = None
    implementation_status: ImplementationStatus = "not_implemented"
    next_review_date: date | None = None
    model_config = {"extra": "forbid"}


class FrameworkControlUpdate(BaseModel):
    control_code: str | None = Field(None, min_length=1, max_length=50)
    title: str | None = Field(None, min_length=1, max_length=400)
    description: str | None = None
    implementation_status: ImplementationStatus | None = None
    next_review_date: date | None = None
    model_config = {"extra": "forbid"}


class FrameworkControlOut(BaseModel):
    id: int
    framework_id: int
    control_code: str
    title: str
    description: str | None = None
    implementation_status: str
    compliance_status: str
    next_review_date: date | None = None
    created_at: datetime
    updated_at: datetime
    model_config = {"from_attributes": True}


class InternalControlCreate(BaseModel):
    internal_control_code: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=400)
    description: str | None = None
    owner_id: int | None = None
    next_review_date: date | None = None
    model_config = {"extra": "forbid"}


class InternalControlUpdate(BaseModel):
    internal_control_code: str | None = Field(None, min_length=1, max_length=50)
    title: str | None = Field(None, min_length=1, max_length=400)
    description: str | None = None
    owner_id: int | None = None
    next_review_date: date | None = None
    model_config = {"extra": "forbid"}


class InternalControlOut(BaseModel):
    id: int
    internal_control_code: str
    title: str
    description: str | None = None
    owner_id: int | None = None
    compliance_status: str
    next_review_date: date | None = None
    created_at: datetime
    updated_at: datetime
    model_config = {"from_attributes": True}


# ═══ Findings ═══

class FindingCreate(BaseModel):
    internal_control_id: int | None = None
    framework_control_id: int | None = None
    finding_type: FindingType
    title: str = Field(..., min_length=1, max_length=400)
    description: str | None = None
    status: FindingStatus = "Open"
    identified_date: date | None = None
    due_date: date | None = None
    assigned_to: int | None = None
    remediation_plan: str | None = None
    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _one_owner(self):
        if (self.internal_control_id is None) == (self.framework_control_id is None):
            raise ValueError("set exactly one of internal_control_id / framework_control_id")
        return self


class FindingUpdate(BaseModel):
    internal_control_id: int | None = None
    framework_control_id: int | None = None
    finding_type: FindingType | None = None
    title: str | None = Field(None, min_length=1, max_length=400)
    description: str | None = None
    status: FindingStatus | None = None
    due_date: date | None = None
    closed_date: date | None = None
    assigned_to: int | None = None
    remediation_plan: str | None = None
    remediation_notes: str | None = None
    model_config = {"extra": "forbid"}


class FindingOut(BaseModel):
    id: int
    internal_control_id: int | None = None
    framework_control_id: int | None = None
    finding_type: str
    title: str
    description: str | None = None
    status: str
    identified_date: date
    due_date: date | None = None
    closed_date: date | None = None
    assigned_to: int | None = None
    remediation_plan: str | None = None
    remediation_notes: str | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime
    model_config = {"from_attributes": True}


class FindingSummary(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    closed: int = 0
    accepted: int = 0
    major_deviations: int = 0
    minor_deviations: int = 0
    opportunities: int = 0
