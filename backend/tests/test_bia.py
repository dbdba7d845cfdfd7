"""BIA: criticality from the impact timeline, mirrored onto the primary asset."""
import pytest
from httpx import AsyncClient

from riskledger.exceptions import ValidationError
from riskledger.services.bia import BUCKET_ORDER, TIME_BUCKETS, derive_criticality


# ── Deriver ──

def test_earliest_high_bucket_decides():
    assert derive_criticality([("1d", 5), ("3d", 2)], 4) == ("Critical", "1d")


def test_missing_buckets_are_skipped():
    assert derive_criticality([("1d", 1), ("1w", 5)], 4) == ("Medium", "1w")


def test_empty_timeline_is_low():
    assert derive_criticality([], 4) == ("Low", None)


def test_nothing_reaches_threshold():
    assert derive_criticality([(b, 3) for b in BUCKET_ORDER], 4) == ("Low", None)


def test_input_order_does_not_matter():
    assert derive_criticality([("gt1m", 5), ("2w", 4), ("3d", 1)], 4) == ("Medium", "2w")


def test_threshold_is_inclusive():
    assert derive_criticality([("3d", 4)], 4) == ("High", "3d")
    assert derive_criticality([("3d", 4)], 5) == ("Low", None)


def test_late_bucket_reaching_threshold_is_low():
    assert derive_criticality([("1m", 5)], 4) == ("Low", "1m")


def test_unknown_bucket_rejected():
    with pytest.raises(ValidationError):
        derive_criticality([("2d", 5)], 4)


def test_bucket_hours():
    assert [TIME_BUCKETS[b] for b in BUCKET_ORDER] == [24, 72, 168, 336, 720, 1440]


# ── Save / delete cascade ──

async def _asset(client: AsyncClient, criticality="Low") -> int:
    r = await client.post("/api/v1/assets", json={"name": "Payroll", "criticality": criticality})
    assert r.status_code == 201
    return r.json()["id"]


@pytest.mark.asyncio
async def test_save_bia_mirrors_onto_asset(client: AsyncClient, seed_matrix):
    asset_id = await _asset(client)
    r = await client.post("/api/v1/bia", json={
        "primary_asset_id": asset_id,
        "high_threshold": 4,
        "rto_hours": 24, "rpo_hours": 4, "mtd_hours": 72,
        "timeline": [
            {"time_bucket": "3d", "impact_level_id": seed_matrix[2]},
            {"time_bucket": "1d", "impact_level_id": seed_matrix[5], "rationale": "payroll run"},
        ],
    })
    assert r.status_code == 201
    bia = r.json()
    assert bia["derived_criticality"] == "Critical"
    assert bia["time_to_high_bucket"] == "1d"
    assert [e["time_bucket"] for e in bia["timeline"]] == ["1d", "3d"]
    assert bia["timeline"][0]["impact_level"] == 5
    assert bia["next_review_at"] is not None

    asset = (await client.get(f"/api/v1/assets/{asset_id}")).json()
    assert asset["criticality"] == "Critical"
    assert (asset["rto_hours"], asset["rpo_hours"], asset["mtd_hours"]) == (24, 4, 72)
    assert asset["bia_completed"] is True
    assert asset["bia_id"] == bia["id"]


@pytest.mark.asyncio
async def test_default_threshold_from_settings(client: AsyncClient, seed_matrix):
    asset_id = await _asset(client)
    r = await client.post("/api/v1/bia", json={
        "primary_asset_id": asset_id,
        "timeline": [{"time_bucket": "1w", "impact_level_id": seed_matrix[4]}],
    })
    assert r.status_code == 201
    assert r.json()["high_threshold"] == 4
    assert r.json()["derived_criticality"] == "Medium"


@pytest.mark.asyncio
async def test_update_bia_rederives_and_replaces_timeline(client: AsyncClient, seed_matrix):
    asset_id = await _asset(client)
    r = await client.post("/api/v1/bia", json={
        "primary_asset_id": asset_id,
        "timeline": [{"time_bucket": "1d", "impact_level_id": seed_matrix[5]}],
    })
    bia_id = r.json()["id"]

    r = await client.put(f"/api/v1/bia/{bia_id}", json={
        "primary_asset_id": asset_id,
        "timeline": [
            {"time_bucket": "1d", "impact_level_id": seed_matrix[1]},
            {"time_bucket": "2w", "impact_level_id": seed_matrix[4]},
        ],
    })
    assert r.status_code == 200
    assert r.json()["derived_criticality"] == "Medium"
    assert r.json()["time_to_high_bucket"] == "2w"
    assert len(r.json()["timeline"]) == 2
    assert (await client.get(f"/api/v1/assets/{asset_id}")).json()["criticality"] == "Medium"


@pytest.mark.asyncio
async def test_duplicate_bucket_rejected(client: AsyncClient, seed_matrix):
    asset_id = await _asset(client)
    r = await client.post("/api/v1/bia", json={
        "primary_asset_id": asset_id,
        "timeline": [
            {"time_bucket": "1d", "impact_level_id": seed_matrix[5]},
            {"time_bucket": "1d", "impact_level_id": seed_matrix[1]},
        ],
    })
    assert r.status_code == 422
    asset = (await client.get(f"/api/v1/assets/{asset_id}")).json()
    assert asset["bia_completed"] is False


@pytest.mark.asyncio
async def test_unknown_bucket_rejected_at_boundary(client: AsyncClient, seed_matrix):
    asset_id = await _asset(client)
    r = await client.post("/api/v1/bia", json={
        "primary_asset_id": asset_id,
        "timeline": [{"time_bucket": "2d", "impact_level_id": seed_matrix[5]}],
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_bia_for_missing_asset(client: AsyncClient, seed_matrix):
    r = await client.post("/api/v1/bia", json={"primary_asset_id": 404, "timeline": []})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_bia_clears_asset_link(client: AsyncClient, seed_matrix):
    asset_id = await _asset(client)
    bia_id = (await client.post("/api/v1/bia", json={
        "primary_asset_id": asset_id,
        "timeline": [{"time_bucket": "3d", "impact_level_id": seed_matrix[4]}],
    })).json()["id"]

    r = await client.delete(f"/api/v1/bia/{bia_id}")
    assert r.status_code == 204
    asset = (await client.get(f"/api/v1/assets/{asset_id}")).json()
    assert asset["bia_id"] is None
    assert asset["bia_completed"] is False
    assert (await client.get(f"/api/v1/bia/{bia_id}")).status_code == 404
