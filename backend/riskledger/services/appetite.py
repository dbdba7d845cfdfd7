"""
Risk appetite band matching.

Bands are inclusive [min_score, max_score] ranges. Policy is first match in
the order the bands are given, not the narrowest match: overlapping bands
resolve to whichever comes first, and a score that falls into a gap has no
band at all. Callers pass the bands already in the appetite's sort order.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from riskledger.services import risk_scoring
from riskledger.services.activation import get_active
from riskledger.services.store import RecordStore

# Band codes that call for escalation when a risk lands in them
ESCALATION_BANDS = frozenset({"high", "critical", "unacceptable"})


def match_band(value: int, bands: Iterable[Any]) -> Any | None:
    for band in bands:
        if band.min_score <= value <= band.max_score:
            return band
    return None


def appetite_violations(risks: Iterable[Any], bands: Sequence[Any]) -> list[dict]:
    """One entry per risk whose current score has no band or an escalation band."""
    out = []
    for risk in risks:
        value = risk_scoring.current_score(risk)
        band = match_band(value, bands)
        if band is None:
            reason, code, label = "no_band", "none", "No matching band"
        elif band.band.lower() in ESCALATION_BANDS:
            reason, code, label = "escalation_band", band.band, band.label or band.band
        else:
            continue
        out.append({
            "risk_id": risk.id,
            "risk_name": risk.title,
            "score": value,
            "band": code,
            "band_label": label,
            "reason": reason,
        })
    return out


async def active_bands(store: RecordStore) -> tuple[Any | None, list[Any]]:
    appetite = await get_active(store, "risk_appetites")
    if appetite is None:
        return None, []
    bands = await store.query("risk_appetite_bands", appetite_id=appetite.id, order_by=["sort_order", "id"])
    return appetite, bands
