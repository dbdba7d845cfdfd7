from datetime import datetime

from pydantic import BaseModel, Field


class MatrixLevelIn(BaseModel):
    level: int = Field(..., ge=1)
    label: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    color: str | None = Field(None, max_length=20)
    model_config = {"extra": "forbid"}


class MatrixLevelOut(BaseModel):
    id: int
    level: int
    label: str
    description: str | None = None
    color: str | None = None


class MatrixLevelsReplace(BaseModel):
    levels: list[MatrixLevelIn] = Field(..., min_length=1)
    model_config = {"extra": "forbid"}


class MatrixCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    likelihood_levels: list[MatrixLevelIn] = []
    impact_levels: list[MatrixLevelIn] = []
    model_config = {"extra": "forbid"}


class MatrixUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    model_config = {"extra": "forbid"}


class MatrixOut(BaseModel):
    id: int
    name: str
    size: int
    is_active: bool
    likelihood_levels: list[MatrixLevelOut] = []
    impact_levels: list[MatrixLevelOut] = []
    created_at: datetime
    updated_at: datetime
