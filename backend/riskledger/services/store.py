"""
Record store: the engine's only boundary to persistence.

A thin generic layer over one AsyncSession:

    query(collection, **filters)        -> list of records
    get_by_id(collection, id)           -> record | None
    insert(collection, values)          -> record
    update(collection, id, patch)       -> record
    delete(collection, id)              -> None

Collections are table names. Filters are equality on a column, or a range
operator appended with a double underscore: ``due_date__lt=today``,
``status__in=[...]``, ``status__ne="closed"``.

Unknown collections / fields are rejected with ValidationError before the
database is touched. Driver errors surface as CollaboratorUnavailable.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from riskledger.exceptions import CollaboratorUnavailable, NotFoundError, ValidationError
from riskledger.models import (
    AuditLog,
    BiaAssessment,
    BiaImpactTimeline,
    ControlFinding,
    ControlFramework,
    DashboardSnapshot,
    DashboardThreshold,
    EvidenceItem,
    FrameworkControl,
    InternalControl,
    MatrixImpactLevel,
    MatrixLikelihoodLevel,
    Policy,
    PrimaryAsset,
    Risk,
    RiskAppetite,
    RiskAppetiteBand,
    RiskMatrix,
    RiskTreatment,
    SecondaryAsset,
    TreatmentControl,
    Vendor,
)
from riskledger.models.base import Base

logger = logging.getLogger(__name__)

COLLECTIONS: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (
        RiskMatrix, MatrixLikelihoodLevel, MatrixImpactLevel,
        RiskAppetite, RiskAppetiteBand,
        Risk, RiskTreatment, TreatmentControl,
        ControlFramework, FrameworkControl, InternalControl, ControlFinding,
        PrimaryAsset, SecondaryAsset, BiaAssessment, BiaImpactTimeline,
        Policy, Vendor, EvidenceItem,
        DashboardThreshold, DashboardSnapshot,
        AuditLog,
    )
}

_OPERATORS = {
    "eq": lambda col, v: col == v,
    "ne": lambda col, v: col != v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "in": lambda col, v: col.in_(list(v)),
    "isnull": lambda col, v: col.is_(None) if v else col.isnot(None),
}

_READ_ONLY = {"id", "created_at"}


def _model(collection: str) -> type[Base]:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValidationError(f"unknown collection '{collection}'") from None


def _columns(model: type[Base]) -> set[str]:
    return set(model.__table__.columns.keys())


def _check_fields(collection: str, model: type[Base], fields: Iterable[str]) -> None:
    unknown = sorted(set(fields) - (_columns(model) - _READ_ONLY))
    if unknown:
        raise ValidationError(f"unknown field(s) for {collection}: {', '.join(unknown)}")


def _where(collection: str, model: type[Base], filters: dict[str, Any]) -> list:
    clauses = []
    columns = _columns(model)
    for key, value in filters.items():
        name, _, op = key.partition("__")
        op = op or "eq"
        if name not in columns or op not in _OPERATORS:
            raise ValidationError(f"unsupported filter '{key}' on {collection}")
        clauses.append(_OPERATORS[op](getattr(model, name), value))
    return clauses


def _order(model: type[Base], order_by: str | Iterable[str] | None) -> list:
    if order_by is None:
        return [model.id]
    names = [order_by] if isinstance(order_by, str) else list(order_by)
    out = []
    for name in names:
        desc = name.startswith("-")
        col = getattr(model, name.lstrip("-"))
        out.append(col.desc() if desc else col.asc())
    return out


class RecordStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ── reads ──

    async def query(
        self,
        collection: str,
        *,
        order_by: str | Iterable[str] | None = None,
        **filters: Any,
    ) -> list[Any]:
        model = _model(collection)
        q = select(model).where(*_where(collection, model, filters)).order_by(*_order(model, order_by))
        try:
            return list((await self.session.execute(q)).scalars().all())
        except DBAPIError as exc:
            raise CollaboratorUnavailable(collection, exc) from exc

    async def count(self, collection: str, **filters: Any) -> int:
        model = _model(collection)
        q = select(func.count()).select_from(model).where(*_where(collection, model, filters))
        try:
            return (await self.session.execute(q)).scalar() or 0
        except DBAPIError as exc:
            raise CollaboratorUnavailable(collection, exc) from exc

    async def get_by_id(self, collection: str, record_id: int) -> Any | None:
        model = _model(collection)
        try:
            return await self.session.get(model, record_id)
        except DBAPIError as exc:
            raise CollaboratorUnavailable(collection, exc) from exc

    async def require(self, collection: str, record_id: int) -> Any:
        """get_by_id that raises NotFoundError instead of returning None."""
        record = await self.get_by_id(collection, record_id)
        if record is None:
            raise NotFoundError(collection, record_id)
        return record

    # ── writes ──

    async def insert(self, collection: str, values: dict[str, Any]) -> Any:
        model = _model(collection)
        _check_fields(collection, model, values)
        record = model(**values)
        self.session.add(record)
        await self._flush(collection)
        return record

    async def update(self, collection: str, record_id: int, patch: dict[str, Any]) -> Any:
        model = _model(collection)
        _check_fields(collection, model, patch)
        record = await self.require(collection, record_id)
        for key, value in patch.items():
            setattr(record, key, value)
        await self._flush(collection)
        return record

    async def delete(self, collection: str, record_id: int) -> None:
        record = await self.require(collection, record_id)
        await self.session.delete(record)
        await self._flush(collection)

    async def update_where(self, collection: str, patch: dict[str, Any], **filters: Any) -> int:
        """Apply one patch to every record matching the filters; returns the count."""
        records = await self.query(collection, **filters)
        _check_fields(collection, _model(collection), patch)
        for record in records:
            for key, value in patch.items():
                setattr(record, key, value)
        await self._flush(collection)
        return len(records)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ValidationError("change conflicts with existing records") from exc
        except DBAPIError as exc:
            await self.session.rollback()
            raise CollaboratorUnavailable("commit", exc) from exc

    async def rollback(self) -> None:
        await self.session.rollback()

    async def refresh(self, record: Any) -> Any:
        await self.session.refresh(record)
        return record

    async def _flush(self, collection: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ValidationError(f"{collection}: change conflicts with existing records") from exc
        except DBAPIError as exc:
            await self.session.rollback()
            logger.error("Write to %s failed: %s", collection, exc)
            raise CollaboratorUnavailable(collection, exc) from exc
