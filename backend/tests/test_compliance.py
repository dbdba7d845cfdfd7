"""Control compliance status derived from findings, recomputed on every finding write."""
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from riskledger.models import AuditLog
from riskledger.services import compliance
from riskledger.services.compliance import (
    derive_compliance_status, is_usable_for_risk_mitigation, summarize_findings,
)


def _f(finding_type, status):
    return SimpleNamespace(finding_type=finding_type, status=status)


# ── Deriver ──

def test_closed_findings_are_ignored():
    findings = [_f("Major Deviation", "Open"), _f("Minor Deviation", "Closed")]
    assert derive_compliance_status(findings) == "major_deviation"
    assert derive_compliance_status([_f("Major Deviation", "Closed")]) == "compliant"


def test_minor_in_progress():
    assert derive_compliance_status([_f("Minor Deviation", "In Progress")]) == "minor_deviation"


def test_accepted_findings_still_count():
    assert derive_compliance_status([_f("Minor Deviation", "Accepted")]) == "minor_deviation"


def test_opportunities_never_downgrade():
    assert derive_compliance_status([_f("Opportunity for Improvement", "Open")]) == "compliant"


def test_zero_findings_is_compliant():
    assert derive_compliance_status([]) == "compliant"


def test_major_beats_minor():
    findings = [_f("Minor Deviation", "Open"), _f("Major Deviation", "In Progress")]
    assert derive_compliance_status(findings) == "major_deviation"


def test_usable_for_risk_mitigation():
    assert is_usable_for_risk_mitigation("compliant") is True
    assert is_usable_for_risk_mitigation("minor_deviation") is True
    assert is_usable_for_risk_mitigation("major_deviation") is False
    assert is_usable_for_risk_mitigation("not_assessed") is False


def test_summary_counts_deviation_types_only_while_active():
    summary = summarize_findings([
        _f("Major Deviation", "Open"),
        _f("Major Deviation", "Closed"),
        _f("Minor Deviation", "In Progress"),
        _f("Opportunity for Improvement", "Accepted"),
    ])
    assert summary == {
        "total": 4, "open": 1, "in_progress": 1, "closed": 1, "accepted": 1,
        "major_deviations": 1, "minor_deviations": 1, "opportunities": 1,
    }


# ── Cascade through the API ──

async def _status(client: AsyncClient, kind: str, control_id: int) -> str:
    return (await client.get(f"/api/v1/controls/{kind}/{control_id}")).json()["compliance_status"]


@pytest.mark.asyncio
async def test_new_control_is_not_assessed(client: AsyncClient):
    r = await client.post("/api/v1/controls/internal", json={"internal_control_code": "IC-9", "title": "Backups"})
    assert r.status_code == 201
    assert r.json()["compliance_status"] == "not_assessed"


@pytest.mark.asyncio
async def test_compliance_status_not_accepted_as_input(client: AsyncClient):
    r = await client.post("/api/v1/controls/internal", json={
        "internal_control_code": "IC-9", "title": "Backups", "compliance_status": "compliant",
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_finding_lifecycle_recomputes_control(client: AsyncClient, seed_controls):
    ic_id, _ = seed_controls
    r = await client.post("/api/v1/findings", json={
        "internal_control_id": ic_id, "finding_type": "Major Deviation", "title": "No reviews in 2025",
    })
    assert r.status_code == 201
    finding_id = r.json()["id"]
    assert r.json()["identified_date"] is not None
    assert await _status(client, "internal", ic_id) == "major_deviation"

    r = await client.put(f"/api/v1/findings/{finding_id}", json={"finding_type": "Minor Deviation"})
    assert r.status_code == 200
    assert await _status(client, "internal", ic_id) == "minor_deviation"

    r = await client.put(f"/api/v1/findings/{finding_id}", json={"status": "Closed"})
    assert r.json()["closed_date"] is not None
    assert await _status(client, "internal", ic_id) == "compliant"

    r = await client.put(f"/api/v1/findings/{finding_id}", json={"status": "Open"})
    assert r.json()["closed_date"] is None
    assert await _status(client, "internal", ic_id) == "minor_deviation"

    r = await client.delete(f"/api/v1/findings/{finding_id}")
    assert r.status_code == 204
    assert await _status(client, "internal", ic_id) == "compliant"


@pytest.mark.asyncio
async def test_framework_control_findings(client: AsyncClient, seed_controls):
    _, fc_id = seed_controls
    await client.post("/api/v1/findings", json={
        "framework_control_id": fc_id, "finding_type": "Opportunity for Improvement", "title": "Automate",
    })
    assert await _status(client, "framework", fc_id) == "compliant"


@pytest.mark.asyncio
async def test_moving_a_finding_recomputes_both_controls(client: AsyncClient, seed_controls):
    ic_id, fc_id = seed_controls
    r = await client.post("/api/v1/findings", json={
        "internal_control_id": ic_id, "finding_type": "Major Deviation", "title": "Shared accounts",
    })
    finding_id = r.json()["id"]

    r = await client.put(f"/api/v1/findings/{finding_id}", json={
        "internal_control_id": None, "framework_control_id": fc_id,
    })
    assert r.status_code == 200
    assert await _status(client, "internal", ic_id) == "compliant"
    assert await _status(client, "framework", fc_id) == "major_deviation"


@pytest.mark.asyncio
async def test_finding_needs_exactly_one_control(client: AsyncClient, seed_controls):
    ic_id, fc_id = seed_controls
    both = {"internal_control_id": ic_id, "framework_control_id": fc_id,
            "finding_type": "Minor Deviation", "title": "x"}
    neither = {"finding_type": "Minor Deviation", "title": "x"}
    assert (await client.post("/api/v1/findings", json=both)).status_code == 422
    assert (await client.post("/api/v1/findings", json=neither)).status_code == 422
    assert (await client.get("/api/v1/findings")).json() == []


@pytest.mark.asyncio
async def test_moving_to_no_control_rejected(client: AsyncClient, seed_controls):
    ic_id, _ = seed_controls
    finding_id = (await client.post("/api/v1/findings", json={
        "internal_control_id": ic_id, "finding_type": "Minor Deviation", "title": "x",
    })).json()["id"]
    r = await client.put(f"/api/v1/findings/{finding_id}", json={"internal_control_id": None})
    assert r.status_code == 422
    assert await _status(client, "internal", ic_id) == "minor_deviation"


@pytest.mark.asyncio
async def test_unknown_finding_type_rejected(client: AsyncClient, seed_controls):
    ic_id, _ = seed_controls
    r = await client.post("/api/v1/findings", json={
        "internal_control_id": ic_id, "finding_type": "Observation", "title": "x",
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_findings_summary_endpoint(client: AsyncClient, seed_controls):
    ic_id, fc_id = seed_controls
    for finding_type, status in [("Major Deviation", "Open"), ("Minor Deviation", "Closed")]:
        await client.post("/api/v1/findings", json={
            "internal_control_id": ic_id, "finding_type": finding_type, "title": "x", "status": status,
        })
    r = await client.get("/api/v1/findings/summary")
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 2
    assert data["closed"] == 1
    assert data["major_deviations"] == 1
    assert data["minor_deviations"] == 0

    r = await client.get(f"/api/v1/controls/internal/{ic_id}/findings/summary")
    assert r.json()["total"] == 2


# ── Service level ──

@pytest.mark.asyncio
async def test_recompute_is_idempotent(store, seed_controls):
    ic_id, _ = seed_controls
    await store.insert("control_findings", {
        "internal_control_id": ic_id, "finding_type": "Minor Deviation", "title": "x",
    })
    await store.commit()
    first = await compliance.recompute_control_compliance(store, "internal", ic_id)
    await store.commit()
    second = await compliance.recompute_control_compliance(store, "internal", ic_id)
    await store.commit()
    assert first == second == "minor_deviation"

    entries = (await store.session.execute(
        select(AuditLog).where(AuditLog.entity_type == "internal_controls")
    )).scalars().all()
    assert len(entries) == 1
    assert (entries[0].old_value, entries[0].new_value) == ("not_assessed", "minor_deviation")


@pytest.mark.asyncio
async def test_zero_findings_after_derivation_is_compliant(store, seed_controls):
    ic_id, _ = seed_controls
    assert await compliance.recompute_control_compliance(store, "internal", ic_id) == "compliant"


@pytest.mark.asyncio
async def test_missing_control_is_skipped_and_finding_kept(store, caplog):
    finding = await compliance.create_finding(store, {
        "internal_control_id": 999, "finding_type": "Major Deviation", "title": "orphan",
    })
    assert finding.id is not None
    assert await store.get_by_id("control_findings", finding.id) is not None
    assert "Compliance cascade skipped" in caplog.text
