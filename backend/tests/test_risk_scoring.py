"""Unit tests: risk scorer and matrix level validation."""
from types import SimpleNamespace

import pytest

from riskledger.exceptions import NotFoundError, ValidationError
from riskledger.services import risk_scoring
from riskledger.services.risk_scoring import (
    LIKELIHOOD_SCORES, SEVERITY_SCORES, current_score, level, score, validate_levels,
)


def _risk(**kw):
    base = dict(
        inherent_severity="high", inherent_likelihood="likely",
        net_severity=None, net_likelihood=None, residual_score=None,
    )
    base.update(kw)
    return SimpleNamespace(**base)


def test_score_is_product_over_every_pair():
    for sev, s in SEVERITY_SCORES.items():
        for lik, l in LIKELIHOOD_SCORES.items():
            value = score(sev, lik)
            assert value == s * l
            assert 1 <= value <= 25


def test_fixed_mappings():
    assert [SEVERITY_SCORES[k] for k in ("critical", "high", "medium", "low", "negligible")] == [5, 4, 3, 2, 1]
    assert [LIKELIHOOD_SCORES[k] for k in ("almost_certain", "likely", "possible", "unlikely", "rare")] == [5, 4, 3, 2, 1]


@pytest.mark.parametrize("value,expected", [
    (25, "critical"), (20, "critical"), (19, "high"), (12, "high"),
    (11, "medium"), (6, "medium"), (5, "low"), (1, "low"),
])
def test_level_boundaries(value, expected):
    assert level(value) == expected


def test_unknown_severity_fails_fast():
    with pytest.raises(ValidationError):
        score("catastrophic", "likely")
    with pytest.raises(ValidationError):
        score("high", "sometimes")


def test_current_score_prefers_residual_then_net_then_inherent():
    assert current_score(_risk()) == 16
    assert current_score(_risk(net_severity="low", net_likelihood="rare")) == 2
    assert current_score(_risk(net_severity="low", net_likelihood="rare", residual_score=9)) == 9


def test_validate_levels():
    validate_levels([1, 2, 3])
    validate_levels([3, 1, 2])
    for bad in ([], [0, 1], [1, 3], [1, 1, 2], [2, 3]):
        with pytest.raises(ValidationError):
            validate_levels(bad)


@pytest.mark.asyncio
async def test_levels_of_active_matrix_in_order(store, seed_matrix):
    impact = await risk_scoring.levels(store, "impact")
    assert [lv["level"] for lv in impact] == [1, 2, 3, 4, 5]
    assert impact[0]["label"] == "Minimal"
    likelihood = await risk_scoring.levels(store, "likelihood")
    assert likelihood[-1]["label"] == "Almost certain"


@pytest.mark.asyncio
async def test_levels_without_active_matrix(store):
    with pytest.raises(NotFoundError):
        await risk_scoring.levels(store, "impact")
