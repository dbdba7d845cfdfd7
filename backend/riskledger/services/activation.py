"""Single-active records: one risk matrix, one risk appetite, one control framework."""
import logging

from riskledger.exceptions import ValidationError
from riskledger.services.store import RecordStore

logger = logging.getLogger(__name__)

ACTIVATABLE = ("risk_matrices", "risk_appetites", "control_frameworks")


async def set_active(store: RecordStore, collection: str, record_id: int):
    """Deactivate every sibling, then activate one record, in a single commit."""
    if collection not in ACTIVATABLE:
        raise ValidationError(f"'{collection}' has no active pointer")
    record = await store.require(collection, record_id)
    deactivated = await store.update_where(collection, {"is_active": False}, is_active=True)
    await store.update(collection, record_id, {"is_active": True})
    await store.commit()
    logger.info("Activated %s %s (deactivated %d)", collection, record_id, deactivated)
    return record


async def get_active(store: RecordStore, collection: str):
    if collection not in ACTIVATABLE:
        raise ValidationError(f"'{collection}' has no active pointer")
    rows = await store.query(collection, is_active=True, order_by="-updated_at")
    return rows[0] if rows else None
