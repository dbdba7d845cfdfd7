from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class AppetiteBandIn(BaseModel):
    band: str = Field(..., min_length=1, max_length=50)
    label: str | None = Field(None, max_length=100)
    min_score: int = Field(..., ge=0)
    max_score: int = Field(..., ge=0)
    acceptance_role: str | None = Field(None, max_length=100)
    authorized_actions: list[str] = []
    color: str | None = Field(None, max_length=20)
    description: str | None = None
    sort_order: int | None = None
    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _range(self):
        if self.min_score > self.max_score:
            raise ValueError("min_score must not exceed max_score")
        return self


class AppetiteBandOut(BaseModel):
    id: int
    appetite_id: int
    band: str
    label: str | None = None
    min_score: int
    max_score: int
    acceptance_role: str | None = None
    authorized_actions: list[str] | None = None
    color: str | None = None
    description: str | None = None
    sort_order: int
    model_config = {"from_attributes": True}


class AppetiteBandsReplace(BaseModel):
    bands: list[AppetiteBandIn]
    model_config = {"extra": "forbid"}


class AppetiteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    matrix_id: int | None = None
    owner_id: int | None = None
    narrative_statement: str | None = None
    escalation_criteria: str | None = None
    reporting_cadence: str | None = Field(None, max_length=50)
    bands: list[AppetiteBandIn] = []
    model_config = {"extra": "forbid"}


class AppetiteUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    matrix_id: int | None = None
    owner_id: int | None = None
    narrative_statement: str | None = None
    escalation_criteria: str | None = None
    reporting_cadence: str | None = Field(None, max_length=50)
    model_config = {"extra": "forbid"}


class AppetiteOut(BaseModel):
    id: int
    name: str
    matrix_id: int | None = None
    owner_id: int | None = None
    narrative_statement: str | None = None
    escalation_criteria: str | None = None
    reporting_cadence: str | None = None
    is_active: bool
    bands: list[AppetiteBandOut] = []
    created_at: datetime
    updated_at: datetime


class BandMatchOut(BaseModel):
    appetite_id: int | None = None
    score: int
    band: AppetiteBandOut | None = None
    escalate: bool
