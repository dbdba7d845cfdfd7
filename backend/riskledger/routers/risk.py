"""
Risk register module: /api/v1/risks

score = severity (1-5) x likelihood (1-5); level critical >=20, high >=12,
medium >=6, low otherwise. Residual fields are read-only here: they are
written by starting or completing a treatment.
"""
from fastapi import APIRouter, Depends, Query

from riskledger.database import get_store
from riskledger.middleware.audit import audit_log, current_user_id, diff_changes
from riskledger.models import Risk
from riskledger.schemas.risk import RiskCreate, RiskOut, RiskUpdate
from riskledger.schemas.treatment import TreatmentOut
from riskledger.services import risk_scoring
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/risks", tags=["Risk register"])


def _risk_out(r: Risk) -> RiskOut:
    inherent = risk_scoring.inherent_score(r)
    current = risk_scoring.current_score(r)
    return RiskOut(
        id=r.id, risk_code=r.risk_code, title=r.title, description=r.description,
        category=r.category, owner_id=r.owner_id,
        inherent_severity=r.inherent_severity, inherent_likelihood=r.inherent_likelihood,
        inherent_score=inherent, inherent_level=risk_scoring.level(inherent),
        net_severity=r.net_severity, net_likelihood=r.net_likelihood,
        residual_likelihood=r.residual_likelihood, residual_score=r.residual_score,
        residual_rating=r.residual_rating, residual_updated_at=r.residual_updated_at,
        current_score=current, current_level=risk_scoring.level(current),
        status=r.status, treatment_plan=r.treatment_plan, review_date=r.review_date,
        is_archived=r.is_archived, created_at=r.created_at, updated_at=r.updated_at,
    )


# =================== LIST ===================

@router.get("", response_model=list[RiskOut], summary="List risks")
async def list_risks(
    status: str | None = Query(None),
    level: str | None = Query(None, description="critical / high / medium / low of the current score"),
    include_archived: bool = Query(False),
    store: RecordStore = Depends(get_store),
):
    filters = {}
    if not include_archived:
        filters["is_archived"] = False
    if status is not None:
        filters["status"] = status
    risks = await store.query("risks", order_by="-inherent_score", **filters)
    out = [_risk_out(r) for r in risks]
    if level is not None:
        out = [r for r in out if r.current_level == level]
    return out


# =================== GET ===================

@router.get("/{risk_id}", response_model=RiskOut, summary="Get risk")
async def get_risk(risk_id: int, store: RecordStore = Depends(get_store)):
    return _risk_out(await store.require("risks", risk_id))


@router.get("/{risk_id}/treatments", response_model=list[TreatmentOut], summary="Treatments of a risk")
async def list_risk_treatments(risk_id: int, store: RecordStore = Depends(get_store)):
    await store.require("risks", risk_id)
    return await store.query("risk_treatments", risk_id=risk_id)


# =================== CREATE ===================

@router.post("", response_model=RiskOut, status_code=201, summary="Create risk")
async def create_risk(body: RiskCreate, store: RecordStore = Depends(get_store)):
    data = body.model_dump()
    data["inherent_score"] = risk_scoring.score(data["inherent_severity"], data["inherent_likelihood"])
    data["created_by"] = current_user_id()
    risk = await store.insert("risks", data)
    await audit_log(store.session, module="risks", action="create", entity_type="risk", entity_id=risk.id)
    await store.commit()
    return _risk_out(risk)


# =================== UPDATE ===================

@router.put("/{risk_id}", response_model=RiskOut, summary="Edit risk")
async def update_risk(risk_id: int, body: RiskUpdate, store: RecordStore = Depends(get_store)):
    risk = await store.require("risks", risk_id)
    data = body.model_dump(exclude_unset=True)
    severity = data.get("inherent_severity", risk.inherent_severity)
    likelihood = data.get("inherent_likelihood", risk.inherent_likelihood)
    data["inherent_score"] = risk_scoring.score(severity, likelihood)

    old = {k: getattr(risk, k) for k in data}
    risk = await store.update("risks", risk_id, data)
    changes = diff_changes(old, data)
    if changes:
        await audit_log(
            store.session, module="risks", action="update",
            entity_type="risk", entity_id=risk_id, changes=changes,
        )
    await store.commit()
    return _risk_out(risk)


# =================== ARCHIVE (soft) ===================

@router.delete("/{risk_id}", response_model=RiskOut, summary="Archive risk")
async def archive_risk(risk_id: int, store: RecordStore = Depends(get_store)):
    risk = await store.require("risks", risk_id)
    old_status = risk.status
    risk = await store.update("risks", risk_id, {"is_archived": True, "status": "archived"})
    await audit_log(
        store.session, module="risks", action="archive",
        entity_type="risk", entity_id=risk_id, changes={"status": (old_status, "archived")},
    )
    await store.commit()
    return _risk_out(risk)
