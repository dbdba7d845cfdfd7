"""
Treatment lifecycle and the residual risk it writes onto its risk.

    planned ──> in_progress ──> completed
       │             │              │
       └─────────────┴──────────────┴──> cancelled   (delete / archive)

Starting or completing a treatment is the only thing that writes residual
fields onto a Risk. Cancelling clears them again, whatever other treatments
the risk has; re-run completion on a remaining treatment to restore them.
An archived risk takes no new treatment work, though cancelling still clears it.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from riskledger.exceptions import NotFoundError, ValidationError
from riskledger.middleware.audit import audit_log, current_user_id
from riskledger.services import risk_scoring
from riskledger.services.compliance import is_usable_for_risk_mitigation
from riskledger.services.store import RecordStore

logger = logging.getLogger(__name__)

TREATMENT_STATUSES = ("planned", "in_progress", "completed", "cancelled")

TRANSITIONS: dict[str, frozenset[str]] = {
    "planned": frozenset({"in_progress", "completed", "cancelled"}),
    "in_progress": frozenset({"completed", "cancelled"}),
    "completed": frozenset({"cancelled"}),
    "cancelled": frozenset(),
}

# Fields on a Risk owned by this module
RESIDUAL_FIELDS = (
    "net_severity",
    "net_likelihood",
    "residual_likelihood",
    "residual_score",
    "residual_rating",
    "residual_updated_at",
)

# Fields a plain edit may change; status and residual values have their own paths
EDITABLE_FIELDS = frozenset({"title", "description", "strategy", "assigned_to", "due_date"})


def check_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, frozenset()):
        raise ValidationError(f"treatment cannot move from '{current}' to '{target}'")


def residual_values(severity: str | None, likelihood: str | None, now: datetime | None = None) -> dict:
    """Risk patch for a residual (severity, likelihood) pair. Raises before any write."""
    if not severity or not likelihood:
        raise ValidationError("residual severity and likelihood are both required")
    value = risk_scoring.score(severity, likelihood)
    return {
        "net_severity": severity,
        "net_likelihood": likelihood,
        "residual_likelihood": likelihood,
        "residual_score": value,
        "residual_rating": risk_scoring.level(value),
        "residual_updated_at": now or datetime.utcnow(),
    }


def _reject_archived(risk: Any) -> None:
    if risk is not None and risk.is_archived:
        raise ValidationError(f"risk {risk.id} is archived and cannot be treated")


async def create_treatment(store: RecordStore, values: dict) -> Any:
    _reject_archived(await store.require("risks", values["risk_id"]))
    treatment = await store.insert("risk_treatments", {
        **values, "status": "planned", "created_by": current_user_id(),
    })
    await store.commit()
    logger.info("Treatment %s planned for risk %s", treatment.id, treatment.risk_id)
    return treatment


async def update_treatment(store: RecordStore, treatment_id: int, patch: dict) -> Any:
    """Plain edit. Never touches the owning risk."""
    unknown = set(patch) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"not editable on a treatment: {', '.join(sorted(unknown))}")
    treatment = await store.require("risk_treatments", treatment_id)
    if treatment.status == "cancelled":
        raise ValidationError("a cancelled treatment cannot be edited")
    treatment = await store.update("risk_treatments", treatment_id, patch)
    await store.commit()
    return treatment


async def _write_risk(store: RecordStore, risk_id: int, treatment_id: int, action: str, patch: dict) -> None:
    try:
        risk = await store.require("risks", risk_id)
    except NotFoundError as exc:
        logger.warning("Residual cascade skipped for treatment %s: %s", treatment_id, exc.message)
        return
    changes = {k: (getattr(risk, k), v) for k, v in patch.items() if getattr(risk, k) != v}
    await store.update("risks", risk_id, patch)
    if changes:
        await audit_log(
            store.session, module="risks", action=action,
            entity_type="risk", entity_id=risk_id, changes=changes,
        )
    await store.commit()


async def _advance(
    store: RecordStore, treatment_id: int, target: str,
    severity: str | None, likelihood: str | None,
) -> Any:
    treatment = await store.require("risk_treatments", treatment_id)
    previous = treatment.status
    check_transition(previous, target)
    _reject_archived(await store.get_by_id("risks", treatment.risk_id))
    severity = severity or treatment.residual_severity
    likelihood = likelihood or treatment.residual_likelihood
    now = datetime.utcnow()
    risk_patch = residual_values(severity, likelihood, now)

    treatment_patch: dict[str, Any] = {
        "status": target,
        "residual_severity": severity,
        "residual_likelihood": likelihood,
    }
    if target == "completed":
        treatment_patch["completed_at"] = now
    treatment = await store.update("risk_treatments", treatment_id, treatment_patch)
    await audit_log(
        store.session, module="treatments", action=target,
        entity_type="risk_treatment", entity_id=treatment_id, changes={"status": (previous, target)},
    )
    await store.commit()

    risk_patch["status"] = "treated" if target == "completed" else "active"
    await _write_risk(store, treatment.risk_id, treatment.id, "residual", risk_patch)
    logger.info(
        "Treatment %s %s: risk %s residual %s (%s)",
        treatment.id, target, treatment.risk_id,
        risk_patch["residual_score"], risk_patch["residual_rating"],
    )
    return treatment


async def start_treatment(
    store: RecordStore, treatment_id: int,
    severity: str | None = None, likelihood: str | None = None,
) -> Any:
    return await _advance(store, treatment_id, "in_progress", severity, likelihood)


async def complete_treatment(
    store: RecordStore, treatment_id: int,
    severity: str | None = None, likelihood: str | None = None,
) -> Any:
    return await _advance(store, treatment_id, "completed", severity, likelihood)


async def cancel_treatment(store: RecordStore, treatment_id: int) -> Any:
    """Soft delete: mark cancelled and clear the risk's residual fields."""
    treatment = await store.require("risk_treatments", treatment_id)
    previous = treatment.status
    check_transition(previous, "cancelled")
    treatment = await store.update("risk_treatments", treatment_id, {"status": "cancelled"})
    await audit_log(
        store.session, module="treatments", action="cancelled",
        entity_type="risk_treatment", entity_id=treatment_id, changes={"status": (previous, "cancelled")},
    )
    await store.commit()

    risk_patch: dict[str, Any] = dict.fromkeys(RESIDUAL_FIELDS)
    risk = await store.get_by_id("risks", treatment.risk_id)
    if risk is not None and risk.status == "treated":
        risk_patch["status"] = "active"
    await _write_risk(store, treatment.risk_id, treatment.id, "residual_cleared", risk_patch)
    logger.info("Treatment %s cancelled, residual cleared on risk %s", treatment.id, treatment.risk_id)
    return treatment


# ──────────────────────────────────────────────
# Treatment ↔ internal control links
# ──────────────────────────────────────────────

async def link_control(
    store: RecordStore, treatment_id: int, internal_control_id: int,
    *, notes: str | None = None, implementation_status: str = "planned",
) -> Any:
    """Link a control to a treatment; the control must be usable for mitigation."""
    treatment = await store.require("risk_treatments", treatment_id)
    if treatment.status == "cancelled":
        raise ValidationError("controls cannot be linked to a cancelled treatment")
    control = await store.require("internal_controls", internal_control_id)
    if not is_usable_for_risk_mitigation(control.compliance_status):
        raise ValidationError(
            f"control {control.internal_control_code} is '{control.compliance_status}' "
            "and cannot offset residual risk"
        )
    existing = await store.query(
        "treatment_controls", treatment_id=treatment_id, internal_control_id=internal_control_id,
    )
    if existing:
        return existing[0]
    link = await store.insert("treatment_controls", {
        "treatment_id": treatment_id,
        "internal_control_id": internal_control_id,
        "implementation_status": implementation_status,
        "notes": notes,
        "created_by": current_user_id(),
    })
    await store.commit()
    return link


async def unlink_control(store: RecordStore, treatment_id: int, internal_control_id: int) -> None:
    rows = await store.query(
        "treatment_controls", treatment_id=treatment_id, internal_control_id=internal_control_id,
    )
    if not rows:
        raise NotFoundError("treatment_controls", internal_control_id)
    for row in rows:
        await store.delete("treatment_controls", row.id)
    await store.commit()
