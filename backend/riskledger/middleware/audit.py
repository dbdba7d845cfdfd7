"""
Audit trail helper: call audit_log() from services after derived writes.

Usage in a cascade:
    from riskledger.middleware.audit import audit_log
    await audit_log(store.session, module="risks", action="residual",
                    entity_type="risk", entity_id=risk.id,
                    changes={"residual_score": (None, 4)})

The acting user and client IP come from the per-request context set by
AuditContextMiddleware in main.py.
"""
from __future__ import annotations

import contextvars
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from riskledger.models.audit import AuditLog

_ctx_user_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "_ctx_user_id", default=None
)
_ctx_ip_address: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "_ctx_ip_address", default=None
)


def set_audit_context(
    *,
    user_id: int | None = None,
    ip_address: str | None = None,
) -> None:
    """Store the current request's user and IP so audit entries can use them."""
    _ctx_user_id.set(user_id)
    _ctx_ip_address.set(ip_address)


def current_user_id() -> int | None:
    return _ctx_user_id.get()


async def audit_log(
    session: AsyncSession,
    *,
    module: str,
    action: str,
    entity_type: str,
    entity_id: int,
    changes: dict[str, tuple] | None = None,
):
    """
    Record one or more audit entries.

    changes: dict of field_name -> (old_value, new_value)
    If changes is None, a single entry with no field detail is created.
    """
    user_id = _ctx_user_id.get()
    ip_address = _ctx_ip_address.get()
    if changes:
        for field_name, (old_val, new_val) in changes.items():
            session.add(AuditLog(
                user_id=user_id,
                module=module,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                field_name=field_name,
                old_value=str(old_val) if old_val is not None else None,
                new_value=str(new_val) if new_val is not None else None,
                ip_address=ip_address,
                created_at=datetime.utcnow(),
            ))
    else:
        session.add(AuditLog(
            user_id=user_id,
            module=module,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            ip_address=ip_address,
            created_at=datetime.utcnow(),
        ))


def diff_changes(old: dict, new: dict) -> dict[str, tuple]:
    """Compare two dicts and return {field: (old_val, new_val)} for changed fields."""
    changes = {}
    for key in new:
        if key in old and old[key] != new[key]:
            changes[key] = (old[key], new[key])
    return changes
