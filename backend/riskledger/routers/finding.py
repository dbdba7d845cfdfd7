"""
Audit findings module: /api/v1/findings

Every create / update / delete re-derives the owning control's
compliance_status (both controls when a finding moves).
"""
from fastapi import APIRouter, Depends, Query

from riskledger.database import get_store
from riskledger.middleware.audit import current_user_id
from riskledger.schemas.control import FindingCreate, FindingOut, FindingSummary, FindingUpdate
from riskledger.services import compliance
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/findings", tags=["Audit findings"])


@router.get("", response_model=list[FindingOut], summary="List findings")
async def list_findings(
    status: str | None = Query(None),
    finding_type: str | None = Query(None),
    internal_control_id: int | None = Query(None),
    framework_control_id: int | None = Query(None),
    store: RecordStore = Depends(get_store),
):
    filters = {
        k: v for k, v in {
            "status": status,
            "finding_type": finding_type,
            "internal_control_id": internal_control_id,
            "framework_control_id": framework_control_id,
        }.items() if v is not None
    }
    return await store.query("control_findings", order_by="-identified_date", **filters)


@router.get("/summary", response_model=FindingSummary, summary="Finding counts")
async def findings_summary(store: RecordStore = Depends(get_store)):
    return FindingSummary(**compliance.summarize_findings(await store.query("control_findings")))


@router.get("/{finding_id}", response_model=FindingOut, summary="Get finding")
async def get_finding(finding_id: int, store: RecordStore = Depends(get_store)):
    return await store.require("control_findings", finding_id)


@router.post("", response_model=FindingOut, status_code=201, summary="Record finding")
async def create_finding(body: FindingCreate, store: RecordStore = Depends(get_store)):
    data = body.model_dump(exclude_none=True)
    data["created_by"] = current_user_id()
    return await compliance.create_finding(store, data)


@router.put("/{finding_id}", response_model=FindingOut, summary="Edit finding")
async def update_finding(finding_id: int, body: FindingUpdate, store: RecordStore = Depends(get_store)):
    return await compliance.update_finding(store, finding_id, body.model_dump(exclude_unset=True))


@router.delete("/{finding_id}", status_code=204, summary="Delete finding")
async def delete_finding(finding_id: int, store: RecordStore = Depends(get_store)):
    await compliance.delete_finding(store, finding_id)
