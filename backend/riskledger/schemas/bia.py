from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TimeBucket = Literal["1d", "3d", "1w", "2w", "1m", "gt1m"]


class TimelineEntryIn(BaseModel):
    time_bucket: TimeBucket
    impact_level_id: int
    rationale: str | None = None
    model_config = {"extra": "forbid"}


class TimelineEntryOut(BaseModel):
    id: int
    time_bucket: str
    impact_level_id: int
    impact_level: int | None = None
    impact_label: str | None = None
    rationale: str | None = None


class BiaSave(BaseModel):
    primary_asset_id: int
    risk_appetite_id: int | None = None
    bia_owner: str | None = Field(None, max_length=200)
    notes: str | None = None
    high_threshold: int | None = Field(None, ge=1)
    rto_hours: int | None = Field(None, ge=0)
    rpo_hours: int | None = Field(None, ge=0)
    mtd_hours: int | None = Field(None, ge=0)
    timeline: list[TimelineEntryIn] = []
    model_config = {"extra": "forbid"}


class BiaOut(BaseModel):
    id: int
    primary_asset_id: int
    risk_appetite_id: int | None = None
    bia_owner: str | None = None
    notes: str | None = None
    high_threshold: int
    rto_hours: int | None = None
    rpo_hours: int | None = None
    mtd_hours: int | None = None
    derived_criticality: str | None = None
    time_to_high_bucket: str | None = None
    last_assessed_at: datetime | None = None
    next_review_at: datetime | None = None
    timeline: list[TimelineEntryOut] = []
    created_at: datetime
    updated_at: datetime


# ═══ Assets ═══

class PrimaryAssetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=400)
    description: str | None = None
    asset_type: str | None = Field(None, max_length=50)
    owner_id: int | None = None
    criticality: str | None = Field(None, max_length=20)
    model_config = {"extra": "forbid"}


class PrimaryAssetOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    asset_type: str | None = None
    owner_id: int | None = None
    criticality: str | None = None
    rto_hours: int | None = None
    rpo_hours: int | None = None
    mtd_hours: int | None = None
    bia_id: int | None = None
    bia_completed: bool
    created_at: datetime
    updated_at: datetime
    model_config = {"from_attributes": True}
