from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["critical", "high", "medium", "low", "negligible"]
Likelihood = Literal["almost_certain", "likely", "possible", "unlikely", "rare"]

# "treated" is only ever set by completing a treatment, "archived" only by DELETE
EditableRiskStatus = Literal[
    "draft", "pending_review", "approved", "active", "monitoring", "closed",
]


class RiskCreate(BaseModel):
    risk_code: str | None = Field(None, max_length=30)
    title: str = Field(..., min_length=1, max_length=400)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    owner_id: int | None = None
    inherent_severity: Severity
    inherent_likelihood: Likelihood
    status: EditableRiskStatus = "draft"
    treatment_plan: str | None = None
    review_date: date | None = None
    model_config = {"extra": "forbid"}


class RiskUpdate(BaseModel):
    risk_code: str | None = Field(None, max_length=30)
    title: str | None = Field(None, min_length=1, max_length=400)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    owner_id: int | None = None
    inherent_severity: Severity | None = None
    inherent_likelihood: Likelihood | None = None
    status: EditableRiskStatus | None = None
    treatment_plan: str | None = None
    review_date: date | None = None
    model_config = {"extra": "forbid"}


class RiskOut(BaseModel):
    id: int
    risk_code: str | None = None
    title: str
    description: str | None = None
    category: str | None = None
    owner_id: int | None = None

    inherent_severity: str
    inherent_likelihood: str
    inherent_score: int
    inherent_level: str

    net_severity: str | None = None
    net_likelihood: str | None = None
    residual_likelihood: str | None = None
    residual_score: int | None = None
    residual_rating: str | None = None
    residual_updated_at: datetime | None = None

    current_score: int
    current_level: str

    status: str
    treatment_plan: str | None = None
    review_date: date | None = None
    is_archived: bool
    created_at: datetime
    updated_at: datetime
