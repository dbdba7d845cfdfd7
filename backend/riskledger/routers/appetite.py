"""
Risk appetite module: /api/v1/risk-appetites

An appetite owns an ordered list of score bands. Band order is the
matching order: the first band containing a score wins.
"""
from fastapi import APIRouter, Depends, Query

from riskledger.database import get_store
from riskledger.exceptions import ValidationError
from riskledger.schemas.appetite import (
    AppetiteBandIn, AppetiteBandOut, AppetiteBandsReplace, AppetiteCreate, AppetiteOut,
    AppetiteUpdate, BandMatchOut,
)
from riskledger.services import activation, appetite
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/risk-appetites", tags=["Risk appetite"])


async def _bands(store: RecordStore, appetite_id: int) -> list:
    return await store.query("risk_appetite_bands", appetite_id=appetite_id, order_by=["sort_order", "id"])


async def _appetite_out(store: RecordStore, a) -> AppetiteOut:
    return AppetiteOut(
        id=a.id, name=a.name, matrix_id=a.matrix_id, owner_id=a.owner_id,
        narrative_statement=a.narrative_statement,
        escalation_criteria=a.escalation_criteria,
        reporting_cadence=a.reporting_cadence, is_active=a.is_active,
        bands=[AppetiteBandOut.model_validate(b) for b in await _bands(store, a.id)],
        created_at=a.created_at, updated_at=a.updated_at,
    )


async def _insert_bands(store: RecordStore, appetite_id: int, bands: list[AppetiteBandIn]) -> None:
    for idx, band in enumerate(bands):
        data = band.model_dump()
        if data["sort_order"] is None:
            data["sort_order"] = idx
        await store.insert("risk_appetite_bands", {**data, "appetite_id": appetite_id})


# ═══════════════════ MATCH (before /{id}) ═══════════════════

@router.get("/match", response_model=BandMatchOut, summary="Band of the active appetite for a score")
async def match_score(
    score: int = Query(..., ge=0),
    store: RecordStore = Depends(get_store),
):
    active, bands = await appetite.active_bands(store)
    band = appetite.match_band(score, bands)
    return BandMatchOut(
        appetite_id=active.id if active else None,
        score=score,
        band=AppetiteBandOut.model_validate(band) if band else None,
        escalate=band is None or band.band.lower() in appetite.ESCALATION_BANDS,
    )


@router.get("/active", response_model=AppetiteOut | None, summary="Active risk appetite")
async def get_active_appetite(store: RecordStore = Depends(get_store)):
    a = await activation.get_active(store, "risk_appetites")
    return await _appetite_out(store, a) if a else None


@router.get("/violations", summary="Risks outside the active appetite")
async def list_violations(store: RecordStore = Depends(get_store)):
    active, bands = await appetite.active_bands(store)
    if active is None:
        return []
    risks = await store.query("risks", is_archived=False)
    return appetite.appetite_violations(risks, bands)


# ═══════════════════ CRUD ═══════════════════

@router.get("", response_model=list[AppetiteOut], summary="List risk appetites")
async def list_appetites(store: RecordStore = Depends(get_store)):
    return [await _appetite_out(store, a) for a in await store.query("risk_appetites", order_by="name")]


@router.get("/{appetite_id}", response_model=AppetiteOut, summary="Get risk appetite")
async def get_appetite(appetite_id: int, store: RecordStore = Depends(get_store)):
    return await _appetite_out(store, await store.require("risk_appetites", appetite_id))


@router.post("", response_model=AppetiteOut, status_code=201, summary="Create risk appetite")
async def create_appetite(body: AppetiteCreate, store: RecordStore = Depends(get_store)):
    if body.matrix_id is not None:
        await store.require("risk_matrices", body.matrix_id)
    a = await store.insert("risk_appetites", body.model_dump(exclude={"bands"}))
    await _insert_bands(store, a.id, body.bands)
    await store.commit()
    return await _appetite_out(store, a)


@router.put("/{appetite_id}", response_model=AppetiteOut, summary="Edit risk appetite")
async def update_appetite(appetite_id: int, body: AppetiteUpdate, store: RecordStore = Depends(get_store)):
    a = await store.update("risk_appetites", appetite_id, body.model_dump(exclude_unset=True))
    await store.commit()
    return await _appetite_out(store, a)


@router.put("/{appetite_id}/bands", response_model=AppetiteOut, summary="Replace appetite bands")
async def replace_bands(appetite_id: int, body: AppetiteBandsReplace, store: RecordStore = Depends(get_store)):
    a = await store.require("risk_appetites", appetite_id)
    for old in await _bands(store, appetite_id):
        await store.delete("risk_appetite_bands", old.id)
    await _insert_bands(store, appetite_id, body.bands)
    await store.commit()
    return await _appetite_out(store, a)


@router.post("/{appetite_id}/activate", response_model=AppetiteOut, summary="Make this the active appetite")
async def activate_appetite(appetite_id: int, store: RecordStore = Depends(get_store)):
    a = await activation.set_active(store, "risk_appetites", appetite_id)
    return await _appetite_out(store, a)


@router.delete("/{appetite_id}", status_code=204, summary="Delete risk appetite")
async def delete_appetite(appetite_id: int, store: RecordStore = Depends(get_store)):
    a = await store.require("risk_appetites", appetite_id)
    if a.is_active:
        raise ValidationError("the active appetite cannot be deleted; activate another one first")
    for band in await _bands(store, appetite_id):
        await store.delete("risk_appetite_bands", band.id)
    await store.delete("risk_appetites", appetite_id)
    await store.commit()
