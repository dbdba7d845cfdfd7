"""
Business Impact Analysis module: /api/v1/bia

Saving a BIA derives the asset criticality from the impact timeline and
mirrors criticality, RTO, RPO and MTD onto the primary asset.
"""
from fastapi import APIRouter, Depends

from riskledger.database import get_store
from riskledger.exceptions import NotFoundError, ValidationError
from riskledger.schemas.bia import BiaOut, BiaSave, TimelineEntryOut
from riskledger.services import bia as svc
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/bia", tags=["Business impact analysis"])


async def _bia_out(store: RecordStore, b) -> BiaOut:
    timeline = []
    for row in await svc.timeline_of(store, b.id):
        impact = await store.get_by_id("matrix_impact_levels", row.impact_level_id)
        timeline.append(TimelineEntryOut(
            id=row.id, time_bucket=row.time_bucket, impact_level_id=row.impact_level_id,
            impact_level=impact.level if impact else None,
            impact_label=impact.label if impact else None,
            rationale=row.rationale,
        ))
    return BiaOut(
        id=b.id, primary_asset_id=b.primary_asset_id, risk_appetite_id=b.risk_appetite_id,
        bia_owner=b.bia_owner, notes=b.notes, high_threshold=b.high_threshold,
        rto_hours=b.rto_hours, rpo_hours=b.rpo_hours, mtd_hours=b.mtd_hours,
        derived_criticality=b.derived_criticality, time_to_high_bucket=b.time_to_high_bucket,
        last_assessed_at=b.last_assessed_at, next_review_at=b.next_review_at,
        timeline=timeline, created_at=b.created_at, updated_at=b.updated_at,
    )


def _save_kwargs(body: BiaSave) -> dict:
    return body.model_dump(exclude={"primary_asset_id", "timeline", "high_threshold"})


@router.get("/asset/{asset_id}", response_model=BiaOut, summary="Current BIA of a primary asset")
async def get_asset_bia(asset_id: int, store: RecordStore = Depends(get_store)):
    asset = await store.require("primary_assets", asset_id)
    if asset.bia_id is None:
        raise NotFoundError("bia_assessments", None)
    return await _bia_out(store, await store.require("bia_assessments", asset.bia_id))


@router.get("/{bia_id}", response_model=BiaOut, summary="Get BIA")
async def get_bia(bia_id: int, store: RecordStore = Depends(get_store)):
    return await _bia_out(store, await store.require("bia_assessments", bia_id))


@router.post("", response_model=BiaOut, status_code=201, summary="Create BIA")
async def create_bia(body: BiaSave, store: RecordStore = Depends(get_store)):
    b = await svc.save_bia(
        store, body.primary_asset_id, [e.model_dump() for e in body.timeline],
        high_threshold=body.high_threshold, **_save_kwargs(body),
    )
    return await _bia_out(store, b)


@router.put("/{bia_id}", response_model=BiaOut, summary="Update BIA and re-derive criticality")
async def update_bia(bia_id: int, body: BiaSave, store: RecordStore = Depends(get_store)):
    existing = await store.require("bia_assessments", bia_id)
    if existing.primary_asset_id != body.primary_asset_id:
        raise ValidationError("a BIA cannot be moved to another asset")
    b = await svc.save_bia(
        store, body.primary_asset_id, [e.model_dump() for e in body.timeline],
        high_threshold=body.high_threshold, bia_id=bia_id, **_save_kwargs(body),
    )
    return await _bia_out(store, b)


@router.delete("/{bia_id}", status_code=204, summary="Delete BIA")
async def delete_bia(bia_id: int, store: RecordStore = Depends(get_store)):
    await svc.delete_bia(store, bia_id)
