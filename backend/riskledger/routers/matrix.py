"""
Risk matrix module: /api/v1/matrices

One matrix is active at a time; its likelihood and impact scales are
contiguous levels starting at 1.
"""
from fastapi import APIRouter, Depends

from riskledger.database import get_store
from riskledger.exceptions import NotFoundError, ValidationError
from riskledger.schemas.matrix import (
    MatrixCreate, MatrixLevelOut, MatrixLevelsReplace, MatrixOut, MatrixUpdate,
)
from riskledger.services import activation, risk_scoring
from riskledger.services.risk_scoring import MatrixKind
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/matrices", tags=["Risk matrix"])


async def _matrix_out(store: RecordStore, m) -> MatrixOut:
    return MatrixOut(
        id=m.id, name=m.name, size=m.size, is_active=m.is_active,
        likelihood_levels=await risk_scoring.levels(store, "likelihood", m.id),
        impact_levels=await risk_scoring.levels(store, "impact", m.id),
        created_at=m.created_at, updated_at=m.updated_at,
    )


@router.get("", response_model=list[MatrixOut], summary="List risk matrices")
async def list_matrices(store: RecordStore = Depends(get_store)):
    return [await _matrix_out(store, m) for m in await store.query("risk_matrices", order_by="name")]


@router.get("/active", response_model=MatrixOut, summary="Active risk matrix")
async def get_active_matrix(store: RecordStore = Depends(get_store)):
    m = await activation.get_active(store, "risk_matrices")
    if m is None:
        raise NotFoundError("risk_matrices", None)
    return await _matrix_out(store, m)


@router.get("/{matrix_id}", response_model=MatrixOut, summary="Get risk matrix")
async def get_matrix(matrix_id: int, store: RecordStore = Depends(get_store)):
    return await _matrix_out(store, await store.require("risk_matrices", matrix_id))


@router.post("", response_model=MatrixOut, status_code=201, summary="Create risk matrix")
async def create_matrix(body: MatrixCreate, store: RecordStore = Depends(get_store)):
    for scale in (body.likelihood_levels, body.impact_levels):
        if scale:
            risk_scoring.validate_levels([lv.level for lv in scale])
    size = len(body.likelihood_levels) or len(body.impact_levels) or 5
    m = await store.insert("risk_matrices", {"name": body.name, "size": size})
    for lv in body.likelihood_levels:
        await store.insert("matrix_likelihood_levels", {**lv.model_dump(), "matrix_id": m.id})
    for lv in body.impact_levels:
        await store.insert("matrix_impact_levels", {**lv.model_dump(), "matrix_id": m.id})
    await store.commit()
    return await _matrix_out(store, m)


@router.put("/{matrix_id}", response_model=MatrixOut, summary="Edit risk matrix")
async def update_matrix(matrix_id: int, body: MatrixUpdate, store: RecordStore = Depends(get_store)):
    m = await store.update("risk_matrices", matrix_id, body.model_dump(exclude_unset=True))
    await store.commit()
    return await _matrix_out(store, m)


@router.delete("/{matrix_id}", status_code=204, summary="Delete risk matrix")
async def delete_matrix(matrix_id: int, store: RecordStore = Depends(get_store)):
    m = await store.require("risk_matrices", matrix_id)
    if m.is_active:
        raise ValidationError("the active matrix cannot be deleted; activate another one first")
    for collection in ("matrix_likelihood_levels", "matrix_impact_levels"):
        for lv in await store.query(collection, matrix_id=matrix_id):
            await store.delete(collection, lv.id)
    await store.delete("risk_matrices", matrix_id)
    await store.commit()


@router.post("/{matrix_id}/activate", response_model=MatrixOut, summary="Make this the active matrix")
async def activate_matrix(matrix_id: int, store: RecordStore = Depends(get_store)):
    m = await activation.set_active(store, "risk_matrices", matrix_id)
    return await _matrix_out(store, m)


@router.get("/{matrix_id}/levels/{kind}", response_model=list[MatrixLevelOut], summary="Levels of one scale")
async def get_levels(matrix_id: int, kind: MatrixKind, store: RecordStore = Depends(get_store)):
    await store.require("risk_matrices", matrix_id)
    return await risk_scoring.levels(store, kind, matrix_id)


@router.put("/{matrix_id}/levels/{kind}", response_model=list[MatrixLevelOut], summary="Replace one scale")
async def replace_levels(
    matrix_id: int, kind: MatrixKind, body: MatrixLevelsReplace,
    store: RecordStore = Depends(get_store),
):
    return await risk_scoring.replace_levels(
        store, kind, matrix_id, [lv.model_dump() for lv in body.levels],
    )
