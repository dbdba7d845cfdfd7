"""
Controls module: /api/v1/controls

Framework controls, internal controls and their frameworks. The
compliance_status of a control is derived from its findings and is never
accepted as input; see /api/v1/findings.
"""
from fastapi import APIRouter, Depends, Query

from riskledger.database import get_store
from riskledger.schemas.control import (
    FindingOut, FindingSummary,
    FrameworkControlCreate, FrameworkControlOut, FrameworkControlUpdate,
    FrameworkCreate, FrameworkOut, FrameworkUpdate,
    InternalControlCreate, InternalControlOut, InternalControlUpdate,
)
from riskledger.services import activation, compliance
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/controls", tags=["Controls"])


# ═══════════════════ FRAMEWORKS ═══════════════════

@router.get("/frameworks", response_model=list[FrameworkOut], summary="List frameworks")
async def list_frameworks(store: RecordStore = Depends(get_store)):
    return await store.query("control_frameworks", order_by="name")


@router.post("/frameworks", response_model=FrameworkOut, status_code=201, summary="Create framework")
async def create_framework(body: FrameworkCreate, store: RecordStore = Depends(get_store)):
    fw = await store.insert("control_frameworks", body.model_dump())
    await store.commit()
    return fw


@router.put("/frameworks/{framework_id}", response_model=FrameworkOut, summary="Edit framework")
async def update_framework(framework_id: int, body: FrameworkUpdate, store: RecordStore = Depends(get_store)):
    fw = await store.update("control_frameworks", framework_id, body.model_dump(exclude_unset=True))
    await store.commit()
    return fw


@router.post("/frameworks/{framework_id}/activate", response_model=FrameworkOut, summary="Make this the active framework")
async def activate_framework(framework_id: int, store: RecordStore = Depends(get_store)):
    return await activation.set_active(store, "control_frameworks", framework_id)


# ═══════════════════ FRAMEWORK CONTROLS ═══════════════════

@router.get("/framework", response_model=list[FrameworkControlOut], summary="List framework controls")
async def list_framework_controls(
    framework_id: int | None = Query(None),
    compliance_status: str | None = Query(None),
    store: RecordStore = Depends(get_store),
):
    filters = {}
    if framework_id is not None:
        filters["framework_id"] = framework_id
    if compliance_status is not None:
        filters["compliance_status"] = compliance_status
    return await store.query("framework_controls", order_by="control_code", **filters)


@router.get("/framework/{control_id}", response_model=FrameworkControlOut, summary="Get framework control")
async def get_framework_control(control_id: int, store: RecordStore = Depends(get_store)):
    return await store.require("framework_controls", control_id)


@router.post("/framework", response_model=FrameworkControlOut, status_code=201, summary="Create framework control")
async def create_framework_control(body: FrameworkControlCreate, store: RecordStore = Depends(get_store)):
    await store.require("control_frameworks", body.framework_id)
    c = await store.insert("framework_controls", body.model_dump())
    await store.commit()
    return c


@router.put("/framework/{control_id}", response_model=FrameworkControlOut, summary="Edit framework control")
async def update_framework_control(
    control_id: int, body: FrameworkControlUpdate, store: RecordStore = Depends(get_store),
):
    c = await store.update("framework_controls", control_id, body.model_dump(exclude_unset=True))
    await store.commit()
    return c


@router.post(
    "/framework/{control_id}/recompute", response_model=FrameworkControlOut,
    summary="Re-derive compliance status from findings",
)
async def recompute_framework_control(control_id: int, store: RecordStore = Depends(get_store)):
    await compliance.recompute_control_compliance(store, "framework", control_id)
    await store.commit()
    return await store.require("framework_controls", control_id)


# ═══════════════════ INTERNAL CONTROLS ═══════════════════

@router.get("/internal", response_model=list[InternalControlOut], summary="List internal controls")
async def list_internal_controls(
    compliance_status: str | None = Query(None),
    store: RecordStore = Depends(get_store),
):
    filters = {}
    if compliance_status is not None:
        filters["compliance_status"] = compliance_status
    return await store.query("internal_controls", order_by="internal_control_code", **filters)


@router.get("/internal/{control_id}", response_model=InternalControlOut, summary="Get internal control")
async def get_internal_control(control_id: int, store: RecordStore = Depends(get_store)):
    return await store.require("internal_controls", control_id)


@router.post("/internal", response_model=InternalControlOut, status_code=201, summary="Create internal control")
async def create_internal_control(body: InternalControlCreate, store: RecordStore = Depends(get_store)):
    c = await store.insert("internal_controls", body.model_dump())
    await store.commit()
    return c


@router.put("/internal/{control_id}", response_model=InternalControlOut, summary="Edit internal control")
async def update_internal_control(
    control_id: int, body: InternalControlUpdate, store: RecordStore = Depends(get_store),
):
    c = await store.update("internal_controls", control_id, body.model_dump(exclude_unset=True))
    await store.commit()
    return c


@router.post(
    "/internal/{control_id}/recompute", response_model=InternalControlOut,
    summary="Re-derive compliance status from findings",
)
async def recompute_internal_control(control_id: int, store: RecordStore = Depends(get_store)):
    await compliance.recompute_control_compliance(store, "internal", control_id)
    await store.commit()
    return await store.require("internal_controls", control_id)


@router.get("/internal/{control_id}/findings", response_model=list[FindingOut], summary="Findings of a control")
async def internal_control_findings(control_id: int, store: RecordStore = Depends(get_store)):
    await store.require("internal_controls", control_id)
    return await store.query("control_findings", internal_control_id=control_id, order_by="-identified_date")


@router.get(
    "/internal/{control_id}/findings/summary", response_model=FindingSummary,
    summary="Finding counts for a control",
)
async def internal_control_finding_summary(control_id: int, store: RecordStore = Depends(get_store)):
    await store.require("internal_controls", control_id)
    findings = await store.query("control_findings", internal_control_id=control_id)
    return FindingSummary(**compliance.summarize_findings(findings))
