"""
Risk scoring on the 5×5 severity / likelihood matrix.

    score = severity_score(severity) * likelihood_score(likelihood)    -> 1..25
    level:  critical >= 20, high >= 12, medium >= 6, low otherwise

The same tier boundaries rate inherent, net and residual scores.
"""
from __future__ import annotations

from typing import Any, Literal

from riskledger.exceptions import NotFoundError, ValidationError
from riskledger.services.activation import get_active
from riskledger.services.store import RecordStore

SEVERITY_SCORES: dict[str, int] = {
    "critical": 5,
    "high": 4,
    "medium": 3,
    "low": 2,
    "negligible": 1,
}

LIKELIHOOD_SCORES: dict[str, int] = {
    "almost_certain": 5,
    "likely": 4,
    "possible": 3,
    "unlikely": 2,
    "rare": 1,
}

# (lower bound, level), highest first
LEVEL_TIERS: tuple[tuple[int, str], ...] = (
    (20, "critical"),
    (12, "high"),
    (6, "medium"),
)

MatrixKind = Literal["likelihood", "impact"]

_LEVEL_COLLECTIONS = {
    "likelihood": "matrix_likelihood_levels",
    "impact": "matrix_impact_levels",
}


def severity_score(severity: str) -> int:
    try:
        return SEVERITY_SCORES[severity]
    except KeyError:
        raise ValidationError(f"unknown severity '{severity}'") from None


def likelihood_score(likelihood: str) -> int:
    try:
        return LIKELIHOOD_SCORES[likelihood]
    except KeyError:
        raise ValidationError(f"unknown likelihood '{likelihood}'") from None


def score(severity: str, likelihood: str) -> int:
    return severity_score(severity) * likelihood_score(likelihood)


def level(value: int) -> str:
    for lower_bound, name in LEVEL_TIERS:
        if value >= lower_bound:
            return name
    return "low"


def inherent_score(risk: Any) -> int:
    return score(risk.inherent_severity, risk.inherent_likelihood)


def current_score(risk: Any) -> int:
    """Best available score for a risk: residual, then net, then inherent."""
    if risk.residual_score is not None:
        return risk.residual_score
    if risk.net_severity and risk.net_likelihood:
        return score(risk.net_severity, risk.net_likelihood)
    return inherent_score(risk)


# ──────────────────────────────────────────────
# Matrix model
# ──────────────────────────────────────────────

def validate_levels(levels: list[int]) -> None:
    """Levels must be exactly 1..N with no gaps or duplicates."""
    if not levels:
        raise ValidationError("a matrix scale needs at least one level")
    if sorted(levels) != list(range(1, len(levels) + 1)):
        raise ValidationError(f"levels must be contiguous from 1, got {sorted(levels)}")


async def levels(store: RecordStore, kind: MatrixKind, matrix_id: int | None = None) -> list[dict]:
    """Ordered [{level, label, description}] for one scale of a matrix (default: active)."""
    if kind not in _LEVEL_COLLECTIONS:
        raise ValidationError(f"unknown matrix scale '{kind}'")
    if matrix_id is None:
        matrix = await get_active(store, "risk_matrices")
        if matrix is None:
            raise NotFoundError("risk_matrices", None)
        matrix_id = matrix.id
    rows = await store.query(_LEVEL_COLLECTIONS[kind], matrix_id=matrix_id, order_by="level")
    return [
        {"id": r.id, "level": r.level, "label": r.label, "description": r.description, "color": r.color}
        for r in rows
    ]


async def replace_levels(
    store: RecordStore, kind: MatrixKind, matrix_id: int, entries: list[dict],
) -> list[dict]:
    """Replace one scale of a matrix after checking the levels are contiguous."""
    if kind not in _LEVEL_COLLECTIONS:
        raise ValidationError(f"unknown matrix scale '{kind}'")
    validate_levels([e["level"] for e in entries])
    await store.require("risk_matrices", matrix_id)
    collection = _LEVEL_COLLECTIONS[kind]
    for old in await store.query(collection, matrix_id=matrix_id):
        await store.delete(collection, old.id)
    for entry in entries:
        await store.insert(collection, {**entry, "matrix_id": matrix_id})
    await store.update("risk_matrices", matrix_id, {"size": len(entries)})
    await store.commit()
    return await levels(store, kind, matrix_id)
