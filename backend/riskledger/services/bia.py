"""
Business Impact Analysis: criticality derived from the impact timeline.

The timeline rates the impact of an outage at each fixed time bucket.
The earliest bucket whose impact level reaches the high threshold decides
the criticality; if none reaches it the asset is Low.

    1d -> Critical   3d -> High   1w, 2w -> Medium   1m, gt1m -> Low
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from riskledger.config import settings
from riskledger.exceptions import ValidationError
from riskledger.middleware.audit import audit_log, current_user_id
from riskledger.services.store import RecordStore

logger = logging.getLogger(__name__)

# bucket -> outage duration in hours, in evaluation order
TIME_BUCKETS: dict[str, int] = {
    "1d": 24,
    "3d": 72,
    "1w": 168,
    "2w": 336,
    "1m": 720,
    "gt1m": 1440,
}
BUCKET_ORDER: tuple[str, ...] = tuple(TIME_BUCKETS)

BUCKET_TO_CRITICALITY: dict[str, str] = {
    "1d": "Critical",
    "3d": "High",
    "1w": "Medium",
    "2w": "Medium",
    "1m": "Low",
    "gt1m": "Low",
}

REVIEW_INTERVAL = timedelta(days=365)


def derive_criticality(
    timeline: Iterable[tuple[str, int]], high_threshold: int,
) -> tuple[str, str | None]:
    """(criticality, time_to_high_bucket) for [(bucket, impact level), ...].

    Buckets missing from the timeline are skipped; unknown buckets are a
    ValidationError.
    """
    by_bucket: dict[str, int] = {}
    for bucket, impact in timeline:
        if bucket not in TIME_BUCKETS:
            raise ValidationError(f"unknown time bucket '{bucket}'")
        by_bucket[bucket] = impact
    for bucket in BUCKET_ORDER:
        impact = by_bucket.get(bucket)
        if impact is not None and impact >= high_threshold:
            return BUCKET_TO_CRITICALITY[bucket], bucket
    return "Low", None


async def _resolve_levels(store: RecordStore, entries: list[dict]) -> list[tuple[str, int]]:
    pairs = []
    for entry in entries:
        impact = await store.get_by_id("matrix_impact_levels", entry["impact_level_id"])
        if impact is None:
            raise ValidationError(f"impact level {entry['impact_level_id']} does not exist")
        pairs.append((entry["time_bucket"], impact.level))
    return pairs


async def save_bia(
    store: RecordStore,
    primary_asset_id: int,
    timeline: list[dict],
    *,
    high_threshold: int | None = None,
    bia_id: int | None = None,
    **fields: Any,
) -> Any:
    """Create or update a BIA, derive its criticality and mirror it onto the asset.

    timeline: [{"time_bucket": "1d", "impact_level_id": 7, "rationale": ...}, ...]
    fields:   risk_appetite_id, bia_owner, notes, rto_hours, rpo_hours, mtd_hours
    """
    buckets = [e["time_bucket"] for e in timeline]
    if len(set(buckets)) != len(buckets):
        raise ValidationError("each time bucket may appear only once")
    threshold = settings.BIA_HIGH_THRESHOLD if high_threshold is None else high_threshold
    asset = await store.require("primary_assets", primary_asset_id)
    criticality, bucket = derive_criticality(await _resolve_levels(store, timeline), threshold)

    now = datetime.utcnow()
    values = {
        **fields,
        "primary_asset_id": primary_asset_id,
        "high_threshold": threshold,
        "derived_criticality": criticality,
        "time_to_high_bucket": bucket,
        "last_assessed_at": now,
        "next_review_at": now + REVIEW_INTERVAL,
    }
    if bia_id is None:
        action = "BIA_CREATED"
        bia = await store.insert("bia_assessments", {**values, "created_by": current_user_id()})
    else:
        action = "BIA_UPDATED"
        bia = await store.update("bia_assessments", bia_id, values)
        for old in await store.query("bia_impact_timeline", bia_assessment_id=bia.id):
            await store.delete("bia_impact_timeline", old.id)

    for entry in timeline:
        await store.insert("bia_impact_timeline", {**entry, "bia_assessment_id": bia.id})

    old_criticality = asset.criticality
    await store.update("primary_assets", asset.id, {
        "criticality": criticality,
        "rto_hours": bia.rto_hours,
        "rpo_hours": bia.rpo_hours,
        "mtd_hours": bia.mtd_hours,
        "bia_id": bia.id,
        "bia_completed": True,
    })
    await audit_log(
        store.session, module="bia", action=action,
        entity_type="primary_asset", entity_id=asset.id,
        changes={"criticality": (old_criticality, criticality)},
    )
    await store.commit()
    logger.info(
        "BIA %s saved for asset %s: %s (first high bucket %s)",
        bia.id, asset.id, criticality, bucket,
    )
    return bia


async def timeline_of(store: RecordStore, bia_id: int) -> list[Any]:
    rows = await store.query("bia_impact_timeline", bia_assessment_id=bia_id)
    order = {b: i for i, b in enumerate(BUCKET_ORDER)}
    return sorted(rows, key=lambda r: order.get(r.time_bucket, len(order)))


async def delete_bia(store: RecordStore, bia_id: int) -> None:
    bia = await store.require("bia_assessments", bia_id)
    for row in await store.query("bia_impact_timeline", bia_assessment_id=bia.id):
        await store.delete("bia_impact_timeline", row.id)
    asset = await store.get_by_id("primary_assets", bia.primary_asset_id)
    if asset is not None and asset.bia_id == bia.id:
        await store.update("primary_assets", asset.id, {"bia_id": None, "bia_completed": False})
        await audit_log(
            store.session, module="bia", action="BIA_DELETED",
            entity_type="primary_asset", entity_id=asset.id,
            changes={"bia_id": (bia.id, None)},
        )
    await store.delete("bia_assessments", bia.id)
    await store.commit()
    logger.info("BIA %s deleted", bia_id)
