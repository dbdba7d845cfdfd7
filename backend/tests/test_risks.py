"""Functional tests: risk register, scores and soft archive."""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from riskledger.models import AuditLog


def _risk_body(**overrides) -> dict:
    base = {
        "title": "Phishing leads to credential theft",
        "inherent_severity": "high",
        "inherent_likelihood": "possible",
    }
    base.update(overrides)
    return base


@pytest.mark.asyncio
async def test_create_risk_computes_inherent_score(client: AsyncClient):
    r = await client.post("/api/v1/risks", json=_risk_body())
    assert r.status_code == 201
    data = r.json()
    assert data["inherent_score"] == 12
    assert data["inherent_level"] == "high"
    assert data["current_score"] == 12
    assert data["status"] == "draft"
    assert data["residual_score"] is None
    assert data["is_archived"] is False


@pytest.mark.asyncio
async def test_create_risk_records_creator_and_audit(client: AsyncClient, store):
    r = await client.post("/api/v1/risks", json=_risk_body(), headers={"X-User-Id": "7"})
    risk_id = r.json()["id"]
    entries = (await store.session.execute(
        select(AuditLog).where(AuditLog.entity_type == "risk", AuditLog.entity_id == risk_id)
    )).scalars().all()
    assert [e.action for e in entries] == ["create"]
    assert entries[0].user_id == 7


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [
    ("residual_score", 3),
    ("residual_rating", "low"),
    ("net_severity", "low"),
    ("inherent_score", 1),
])
async def test_derived_fields_not_accepted(client: AsyncClient, field, value):
    r = await client.post("/api/v1/risks", json=_risk_body(**{field: value}))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_treated_status_only_via_treatment(client: AsyncClient):
    assert (await client.post("/api/v1/risks", json=_risk_body(status="treated"))).status_code == 422
    risk_id = (await client.post("/api/v1/risks", json=_risk_body())).json()["id"]
    r = await client.put(f"/api/v1/risks/{risk_id}", json={"status": "treated"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_archived_status_only_via_delete(client: AsyncClient):
    assert (await client.post("/api/v1/risks", json=_risk_body(status="archived"))).status_code == 422
    risk_id = (await client.post("/api/v1/risks", json=_risk_body())).json()["id"]
    r = await client.put(f"/api/v1/risks/{risk_id}", json={"status": "archived"})
    assert r.status_code == 422

    risk = (await client.get(f"/api/v1/risks/{risk_id}")).json()
    assert risk["status"] == "draft"
    assert risk["is_archived"] is False


@pytest.mark.asyncio
async def test_unknown_severity_rejected(client: AsyncClient):
    r = await client.post("/api/v1/risks", json=_risk_body(inherent_severity="catastrophic"))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_update_recomputes_inherent_score(client: AsyncClient):
    risk_id = (await client.post("/api/v1/risks", json=_risk_body())).json()["id"]
    r = await client.put(f"/api/v1/risks/{risk_id}", json={"inherent_likelihood": "almost_certain"})
    assert r.status_code == 200
    assert r.json()["inherent_score"] == 20
    assert r.json()["inherent_level"] == "critical"
    assert r.json()["title"] == "Phishing leads to credential theft"


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient):
    await client.post("/api/v1/risks", json=_risk_body(title="A", status="active"))
    await client.post("/api/v1/risks", json=_risk_body(title="B", inherent_severity="low", inherent_likelihood="rare"))

    r = await client.get("/api/v1/risks")
    assert [x["title"] for x in r.json()] == ["A", "B"]
    assert [x["title"] for x in (await client.get("/api/v1/risks?status=active")).json()] == ["A"]
    assert [x["title"] for x in (await client.get("/api/v1/risks?level=low")).json()] == ["B"]


@pytest.mark.asyncio
async def test_delete_archives(client: AsyncClient):
    risk_id = (await client.post("/api/v1/risks", json=_risk_body(status="active"))).json()["id"]
    r = await client.delete(f"/api/v1/risks/{risk_id}")
    assert r.status_code == 200
    assert r.json()["status"] == "archived"
    assert r.json()["is_archived"] is True

    assert (await client.get("/api/v1/risks")).json() == []
    archived = (await client.get("/api/v1/risks?include_archived=true")).json()
    assert [x["id"] for x in archived] == [risk_id]
    assert (await client.get(f"/api/v1/risks/{risk_id}")).status_code == 200


@pytest.mark.asyncio
async def test_risk_not_found(client: AsyncClient):
    assert (await client.get("/api/v1/risks/999")).status_code == 404
    assert (await client.put("/api/v1/risks/999", json={"title": "x"})).status_code == 404


@pytest.mark.asyncio
async def test_risk_treatments_listing(client: AsyncClient):
    risk_id = (await client.post("/api/v1/risks", json=_risk_body())).json()["id"]
    await client.post("/api/v1/treatments", json={"risk_id": risk_id, "title": "Awareness training"})
    r = await client.get(f"/api/v1/risks/{risk_id}/treatments")
    assert [t["title"] for t in r.json()] == ["Awareness training"]
