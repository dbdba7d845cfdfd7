from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from riskledger.schemas.risk import Likelihood, Severity

Strategy = Literal["mitigate", "transfer", "avoid", "accept"]


class TreatmentCreate(BaseModel):
    risk_id: int
    title: str = Field(..., min_length=1, max_length=400)
    description: str | None = None
    strategy: Strategy | None = None
    assigned_to: int | None = None
    due_date: date | None = None
    # target residual, applied when the treatment starts or completes
    residual_severity: Severity | None = None
    residual_likelihood: Likelihood | None = None
    model_config = {"extra": "forbid"}


class TreatmentUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=400)
    description: str | None = None
    strategy: Strategy | None = None
    assigned_to: int | None = None
    due_date: date | None = None
    model_config = {"extra": "forbid"}


class TreatmentTransition(BaseModel):
    """Residual values for start / complete; falls back to the treatment's stored target."""
    residual_severity: Severity | None = None
    residual_likelihood: Likelihood | None = None
    model_config = {"extra": "forbid"}


class TreatmentOut(BaseModel):
    id: int
    risk_id: int
    title: str
    description: str | None = None
    strategy: str | None = None
    assigned_to: int | None = None
    status: str
    due_date: date | None = None
    completed_at: datetime | None = None
    residual_severity: str | None = None
    residual_likelihood: str | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime
    model_config = {"from_attributes": True}


class TreatmentControlLink(BaseModel):
    internal_control_id: int
    implementation_status: Literal["planned", "in_progress", "implemented"] = "planned"
    notes: str | None = None
    model_config = {"extra": "forbid"}


class TreatmentControlOut(BaseModel):
    id: int
    treatment_id: int
    internal_control_id: int
    control_code: str | None = None
    control_title: str | None = None
    compliance_status: str | None = None
    usable_for_mitigation: bool = False
    implementation_status: str
    notes: str | None = None
