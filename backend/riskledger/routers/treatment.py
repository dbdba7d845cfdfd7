"""
Risk treatment module: /api/v1/treatments

Starting or completing a treatment writes the residual risk onto its risk;
deleting (or archiving) a treatment cancels it and clears that residual.
"""
from fastapi import APIRouter, Depends

from riskledger.database import get_store
from riskledger.schemas.treatment import (
    TreatmentControlLink, TreatmentControlOut, TreatmentCreate, TreatmentOut,
    TreatmentTransition, TreatmentUpdate,
)
from riskledger.services import treatment as svc
from riskledger.services.compliance import is_usable_for_risk_mitigation
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/treatments", tags=["Risk treatment"])


async def _link_out(store: RecordStore, link) -> TreatmentControlOut:
    control = await store.get_by_id("internal_controls", link.internal_control_id)
    status = control.compliance_status if control else None
    return TreatmentControlOut(
        id=link.id, treatment_id=link.treatment_id,
        internal_control_id=link.internal_control_id,
        control_code=control.internal_control_code if control else None,
        control_title=control.title if control else None,
        compliance_status=status,
        usable_for_mitigation=bool(status) and is_usable_for_risk_mitigation(status),
        implementation_status=link.implementation_status, notes=link.notes,
    )


@router.get("/{treatment_id}", response_model=TreatmentOut, summary="Get treatment")
async def get_treatment(treatment_id: int, store: RecordStore = Depends(get_store)):
    return await store.require("risk_treatments", treatment_id)


@router.post("", response_model=TreatmentOut, status_code=201, summary="Plan a treatment")
async def create_treatment(body: TreatmentCreate, store: RecordStore = Depends(get_store)):
    return await svc.create_treatment(store, body.model_dump())


@router.put("/{treatment_id}", response_model=TreatmentOut, summary="Edit treatment (never touches the risk)")
async def update_treatment(treatment_id: int, body: TreatmentUpdate, store: RecordStore = Depends(get_store)):
    return await svc.update_treatment(store, treatment_id, body.model_dump(exclude_unset=True))


# =================== TRANSITIONS ===================

@router.post("/{treatment_id}/start", response_model=TreatmentOut, summary="Start treatment")
async def start_treatment(
    treatment_id: int, body: TreatmentTransition | None = None,
    store: RecordStore = Depends(get_store),
):
    body = body or TreatmentTransition()
    return await svc.start_treatment(store, treatment_id, body.residual_severity, body.residual_likelihood)


@router.post("/{treatment_id}/complete", response_model=TreatmentOut, summary="Complete treatment")
async def complete_treatment(
    treatment_id: int, body: TreatmentTransition | None = None,
    store: RecordStore = Depends(get_store),
):
    body = body or TreatmentTransition()
    return await svc.complete_treatment(store, treatment_id, body.residual_severity, body.residual_likelihood)


@router.post("/{treatment_id}/archive", response_model=TreatmentOut, summary="Archive (cancel) treatment")
async def archive_treatment(treatment_id: int, store: RecordStore = Depends(get_store)):
    return await svc.cancel_treatment(store, treatment_id)


@router.delete("/{treatment_id}", response_model=TreatmentOut, summary="Delete (cancel) treatment")
async def delete_treatment(treatment_id: int, store: RecordStore = Depends(get_store)):
    return await svc.cancel_treatment(store, treatment_id)


# =================== CONTROL LINKS ===================

@router.get("/{treatment_id}/controls", response_model=list[TreatmentControlOut], summary="Linked controls")
async def list_controls(treatment_id: int, store: RecordStore = Depends(get_store)):
    await store.require("risk_treatments", treatment_id)
    links = await store.query("treatment_controls", treatment_id=treatment_id)
    return [await _link_out(store, link) for link in links]


@router.post(
    "/{treatment_id}/controls", response_model=TreatmentControlOut, status_code=201,
    summary="Link a control usable for mitigation",
)
async def link_control(treatment_id: int, body: TreatmentControlLink, store: RecordStore = Depends(get_store)):
    link = await svc.link_control(
        store, treatment_id, body.internal_control_id,
        notes=body.notes, implementation_status=body.implementation_status,
    )
    return await _link_out(store, link)


@router.delete("/{treatment_id}/controls/{control_id}", status_code=204, summary="Unlink a control")
async def unlink_control(treatment_id: int, control_id: int, store: RecordStore = Depends(get_store)):
    await svc.unlink_control(store, treatment_id, control_id)
