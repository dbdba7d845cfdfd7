"""
Control compliance status, derived from the control's findings.

Priority over active (non-Closed) findings:
    Major Deviation  -> major_deviation
    Minor Deviation  -> minor_deviation
    otherwise        -> compliant     (Opportunity for Improvement never downgrades)

`not_assessed` only exists before a control's first derivation run; a
control whose findings are all gone is `compliant`.

recompute_control_compliance() is the single entry point every finding
create / update / delete path calls afterwards. It replaces any reliance on
database triggers.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any, Literal

from riskledger.exceptions import NotFoundError, ValidationError
from riskledger.middleware.audit import audit_log
from riskledger.services.store import RecordStore

logger = logging.getLogger(__name__)

FINDING_TYPES = ("Major Deviation", "Minor Deviation", "Opportunity for Improvement")
FINDING_STATUSES = ("Open", "In Progress", "Closed", "Accepted")
COMPLIANCE_STATUSES = ("compliant", "minor_deviation", "major_deviation", "not_assessed")
USABLE_FOR_MITIGATION = frozenset({"compliant", "minor_deviation"})

ControlKind = Literal["internal", "framework"]

_CONTROL_COLLECTION = {
    "internal": "internal_controls",
    "framework": "framework_controls",
}
_FINDING_FK = {
    "internal": "internal_control_id",
    "framework": "framework_control_id",
}


def active_findings(findings: Iterable[Any]) -> list[Any]:
    return [f for f in findings if f.status != "Closed"]


def derive_compliance_status(findings: Iterable[Any]) -> str:
    active = active_findings(findings)
    if any(f.finding_type == "Major Deviation" for f in active):
        return "major_deviation"
    if any(f.finding_type == "Minor Deviation" for f in active):
        return "minor_deviation"
    return "compliant"


def is_usable_for_risk_mitigation(status: str) -> bool:
    return status in USABLE_FOR_MITIGATION


def summarize_findings(findings: Iterable[Any]) -> dict[str, int]:
    rows = list(findings)
    active = active_findings(rows)
    return {
        "total": len(rows),
        "open": sum(1 for f in rows if f.status == "Open"),
        "in_progress": sum(1 for f in rows if f.status == "In Progress"),
        "closed": sum(1 for f in rows if f.status == "Closed"),
        "accepted": sum(1 for f in rows if f.status == "Accepted"),
        "major_deviations": sum(1 for f in active if f.finding_type == "Major Deviation"),
        "minor_deviations": sum(1 for f in active if f.finding_type == "Minor Deviation"),
        "opportunities": sum(1 for f in active if f.finding_type == "Opportunity for Improvement"),
    }


def _check_owner(internal_control_id: int | None, framework_control_id: int | None) -> None:
    if (internal_control_id is None) == (framework_control_id is None):
        raise ValidationError("a finding belongs to exactly one internal or framework control")


def finding_owner(finding: Any) -> tuple[ControlKind, int]:
    """The (kind, id) of the control a finding belongs to."""
    _check_owner(finding.internal_control_id, finding.framework_control_id)
    if finding.internal_control_id is not None:
        return "internal", finding.internal_control_id
    return "framework", finding.framework_control_id


async def recompute_control_compliance(store: RecordStore, kind: ControlKind, control_id: int) -> str:
    """Re-derive and persist one control's compliance_status from all its findings."""
    collection = _CONTROL_COLLECTION[kind]
    control = await store.require(collection, control_id)
    findings = await store.query("control_findings", **{_FINDING_FK[kind]: control_id})
    new_status = derive_compliance_status(findings)
    old_status = control.compliance_status
    if new_status != old_status:
        await store.update(collection, control_id, {"compliance_status": new_status})
        await audit_log(
            store.session, module="controls", action="derive",
            entity_type=collection, entity_id=control_id,
            changes={"compliance_status": (old_status, new_status)},
        )
    logger.info(
        "Compliance recomputed for %s %s: %d findings -> %s",
        collection, control_id, len(findings), new_status,
    )
    return new_status


async def _cascade(store: RecordStore, owners: Iterable[tuple[ControlKind, int]]) -> None:
    """Recompute each owning control; a missing control is logged and skipped."""
    for kind, control_id in dict.fromkeys(owners):
        try:
            await recompute_control_compliance(store, kind, control_id)
        except NotFoundError as exc:
            logger.warning("Compliance cascade skipped: %s", exc.message)
    await store.commit()


# ──────────────────────────────────────────────
# Finding mutations (leaf write, then parent recompute)
# ──────────────────────────────────────────────

async def create_finding(store: RecordStore, values: dict) -> Any:
    values = dict(values)
    _check_owner(values.get("internal_control_id"), values.get("framework_control_id"))
    values.setdefault("identified_date", date.today())
    if values.get("status") == "Closed" and not values.get("closed_date"):
        values["closed_date"] = date.today()
    finding = await store.insert("control_findings", values)
    owner = finding_owner(finding)
    await store.commit()
    await _cascade(store, [owner])
    return finding


async def update_finding(store: RecordStore, finding_id: int, patch: dict) -> Any:
    finding = await store.require("control_findings", finding_id)
    before = finding_owner(finding)
    patch = dict(patch)
    if patch.get("status") == "Closed" and finding.status != "Closed" and not patch.get("closed_date"):
        patch["closed_date"] = date.today()
    elif "status" in patch and patch["status"] != "Closed":
        patch.setdefault("closed_date", None)
    # moving a finding between controls may only swap owners, never drop both
    if "internal_control_id" in patch or "framework_control_id" in patch:
        _check_owner(
            patch.get("internal_control_id", finding.internal_control_id),
            patch.get("framework_control_id", finding.framework_control_id),
        )
    finding = await store.update("control_findings", finding_id, patch)
    after = finding_owner(finding)
    await store.commit()
    await _cascade(store, [before, after])
    return finding


async def delete_finding(store: RecordStore, finding_id: int) -> tuple[ControlKind, int]:
    finding = await store.require("control_findings", finding_id)
    owner = finding_owner(finding)
    await store.delete("control_findings", finding_id)
    await store.commit()
    await _cascade(store, [owner])
    return owner
