"""Functional tests: risk matrices and the single-active pointer."""
import pytest
from httpx import AsyncClient

from riskledger.exceptions import ValidationError
from riskledger.services import activation


def _scale(labels: list[str]) -> list[dict]:
    return [{"level": i, "label": label} for i, label in enumerate(labels, 1)]


async def _create(client: AsyncClient, name: str) -> dict:
    r = await client.post("/api/v1/matrices", json={
        "name": name,
        "likelihood_levels": _scale(["Rare", "Possible", "Likely"]),
        "impact_levels": _scale(["Low", "Medium", "High"]),
    })
    assert r.status_code == 201
    return r.json()


@pytest.mark.asyncio
async def test_create_matrix(client: AsyncClient):
    m = await _create(client, "3x3")
    assert m["size"] == 3
    assert m["is_active"] is False
    assert [lv["label"] for lv in m["impact_levels"]] == ["Low", "Medium", "High"]


@pytest.mark.asyncio
async def test_gapped_levels_rejected(client: AsyncClient):
    r = await client.post("/api/v1/matrices", json={
        "name": "broken", "impact_levels": [{"level": 1, "label": "a"}, {"level": 3, "label": "c"}],
    })
    assert r.status_code == 422
    assert (await client.get("/api/v1/matrices")).json() == []


@pytest.mark.asyncio
async def test_activation_is_exclusive(client: AsyncClient):
    first = await _create(client, "First")
    second = await _create(client, "Second")
    assert (await client.get("/api/v1/matrices/active")).status_code == 404

    await client.post(f"/api/v1/matrices/{first['id']}/activate")
    r = await client.post(f"/api/v1/matrices/{second['id']}/activate")
    assert r.json()["is_active"] is True

    active = (await client.get("/api/v1/matrices/active")).json()
    assert active["id"] == second["id"]
    states = {m["name"]: m["is_active"] for m in (await client.get("/api/v1/matrices")).json()}
    assert states == {"First": False, "Second": True}


@pytest.mark.asyncio
async def test_active_matrix_cannot_be_deleted(client: AsyncClient):
    m = await _create(client, "Only")
    await client.post(f"/api/v1/matrices/{m['id']}/activate")
    assert (await client.delete(f"/api/v1/matrices/{m['id']}")).status_code == 422

    other = await _create(client, "Spare")
    assert (await client.delete(f"/api/v1/matrices/{other['id']}")).status_code == 204
    assert (await client.get(f"/api/v1/matrices/{other['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_replace_scale(client: AsyncClient):
    m = await _create(client, "Growing")
    r = await client.put(f"/api/v1/matrices/{m['id']}/levels/impact", json={
        "levels": _scale(["Minimal", "Minor", "Moderate", "Major", "Severe"]),
    })
    assert r.status_code == 200
    assert [lv["level"] for lv in r.json()] == [1, 2, 3, 4, 5]

    r = await client.get(f"/api/v1/matrices/{m['id']}/levels/impact")
    assert r.json()[-1]["label"] == "Severe"
    assert (await client.get(f"/api/v1/matrices/{m['id']}")).json()["size"] == 5

    r = await client.put(f"/api/v1/matrices/{m['id']}/levels/impact", json={
        "levels": [{"level": 2, "label": "x"}],
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_unknown_scale_rejected(client: AsyncClient):
    m = await _create(client, "x")
    assert (await client.get(f"/api/v1/matrices/{m['id']}/levels/velocity")).status_code == 422


# ── Service level ──

@pytest.mark.asyncio
async def test_set_active_on_unsupported_collection(store):
    with pytest.raises(ValidationError):
        await activation.set_active(store, "risks", 1)
    with pytest.raises(ValidationError):
        await activation.get_active(store, "vendors")


@pytest.mark.asyncio
async def test_set_active_frameworks(store):
    a = await store.insert("control_frameworks", {"name": "ISO 27001", "is_active": True})
    b = await store.insert("control_frameworks", {"name": "NIS2"})
    await store.commit()

    await activation.set_active(store, "control_frameworks", b.id)
    assert (await activation.get_active(store, "control_frameworks")).id == b.id
    assert await store.count("control_frameworks", is_active=True) == 1
    assert (await store.get_by_id("control_frameworks", a.id)).is_active is False
