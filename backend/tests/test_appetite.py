"""Appetite band matching: first match in the given order, gaps are violations."""
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from riskledger.services.appetite import appetite_violations, match_band


def _band(code, lo, hi, label=None):
    return SimpleNamespace(band=code, label=label or code.title(), min_score=lo, max_score=hi)


def _risk(rid, sev, lik):
    return SimpleNamespace(
        id=rid, title=f"Risk {rid}", inherent_severity=sev, inherent_likelihood=lik,
        net_severity=None, net_likelihood=None, residual_score=None,
    )


def test_first_listed_band_wins_on_overlap():
    wide = _band("medium", 1, 25)
    narrow = _band("low", 1, 5)
    assert match_band(3, [wide, narrow]) is wide
    assert match_band(3, [narrow, wide]) is narrow


def test_order_is_not_resorted():
    bands = [_band("critical", 20, 25), _band("low", 1, 6), _band("medium", 7, 19)]
    assert match_band(4, bands).band == "low"
    assert match_band(20, bands).band == "critical"


def test_inclusive_bounds():
    band = _band("low", 1, 6)
    assert match_band(1, [band]) is band
    assert match_band(6, [band]) is band
    assert match_band(7, [band]) is None


def test_gap_has_no_band():
    bands = [_band("low", 1, 6), _band("high", 10, 25)]
    assert match_band(8, bands) is None
    assert match_band(8, []) is None


def test_violations_for_gap_and_escalation_bands():
    bands = [_band("low", 1, 6), _band("medium", 7, 12), _band("critical", 20, 25)]
    risks = [
        _risk(1, "low", "rare"),              # 2 -> low
        _risk(2, "critical", "possible"),     # 15 -> gap
        _risk(3, "critical", "almost_certain"),  # 25 -> critical
    ]
    out = appetite_violations(risks, bands)
    assert [(v["risk_id"], v["reason"]) for v in out] == [(2, "no_band"), (3, "escalation_band")]
    assert out[0]["band"] == "none"
    assert out[1]["band_label"] == "Critical"


@pytest.mark.asyncio
async def test_match_endpoint_uses_active_appetite(client: AsyncClient, seed_appetite):
    r = await client.get("/api/v1/risk-appetites/match?score=5")
    assert r.status_code == 200
    data = r.json()
    assert data["appetite_id"] == seed_appetite
    assert data["band"]["band"] == "low"          # overlap 5-6: first band wins
    assert data["escalate"] is False

    r = await client.get("/api/v1/risk-appetites/match?score=14")
    assert r.json()["band"] is None
    assert r.json()["escalate"] is True

    r = await client.get("/api/v1/risk-appetites/match?score=20")
    assert r.json()["band"]["band"] == "critical"
    assert r.json()["escalate"] is True


@pytest.mark.asyncio
async def test_create_appetite_keeps_band_order(client: AsyncClient):
    r = await client.post("/api/v1/risk-appetites", json={
        "name": "Ops appetite",
        "bands": [
            {"band": "high", "min_score": 12, "max_score": 25, "authorized_actions": ["escalate"]},
            {"band": "low", "min_score": 1, "max_score": 11},
        ],
    })
    assert r.status_code == 201
    data = r.json()
    assert data["is_active"] is False
    assert [b["band"] for b in data["bands"]] == ["high", "low"]
    assert data["bands"][0]["authorized_actions"] == ["escalate"]


@pytest.mark.asyncio
async def test_band_with_inverted_range_rejected(client: AsyncClient):
    r = await client.post("/api/v1/risk-appetites", json={
        "name": "Broken",
        "bands": [{"band": "low", "min_score": 10, "max_score": 2}],
    })
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_violations_endpoint(client: AsyncClient, seed_appetite, seed_risk):
    r = await client.get("/api/v1/risk-appetites/violations")
    assert r.status_code == 200
    data = r.json()
    assert len(data) == 1
    assert data[0]["risk_id"] == seed_risk
    assert data[0]["band"] == "critical"
