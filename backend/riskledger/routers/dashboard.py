"""
Dashboard API: /api/v1/dashboard

GET "" never fails because one register is missing or unreachable; the
affected sections come back zero-valued and are named in `unavailable`.
"""
from fastapi import APIRouter, Depends, Query

from riskledger.database import get_store
from riskledger.schemas.dashboard import (
    DashboardSnapshotOut, StoredSnapshotOut, ThresholdOut, ThresholdUpdate,
)
from riskledger.services import dashboard as svc
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardSnapshotOut, summary="Dashboard metrics, insights and thresholds")
async def get_dashboard(store: RecordStore = Depends(get_store)):
    return await svc.build_dashboard(store)


@router.post("/snapshots", response_model=StoredSnapshotOut, status_code=201, summary="Store today's metrics")
async def take_snapshot(store: RecordStore = Depends(get_store)):
    return await svc.take_snapshot(store)


@router.get("/snapshots", response_model=list[StoredSnapshotOut], summary="Stored metric snapshots")
async def list_snapshots(
    days: int = Query(30, ge=1, le=3650),
    store: RecordStore = Depends(get_store),
):
    return await svc.list_snapshots(store, days)


@router.get("/thresholds", response_model=list[ThresholdOut], summary="Insight thresholds")
async def list_thresholds(store: RecordStore = Depends(get_store)):
    return await store.query("dashboard_thresholds", order_by=["category", "threshold_key"])


@router.put("/thresholds/{threshold_id}", response_model=ThresholdOut, summary="Change a threshold value")
async def update_threshold(threshold_id: int, body: ThresholdUpdate, store: RecordStore = Depends(get_store)):
    t = await store.update("dashboard_thresholds", threshold_id, body.model_dump())
    await store.commit()
    return t
