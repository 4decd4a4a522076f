"""Audit trail for catalog and quotation changes"""
import logging
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from tourquote.models.audit import Audit
from tourquote.core.enums import AuditAction
from tourquote.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    payload: Any = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
) -> None:
    """Record who did what; failures are logged and never break the request."""
    try:
        if payload is None:
            payload = {}

        if hasattr(payload, "model_dump"):
            payload_dict = payload.model_dump(mode="json", exclude_unset=True)
        elif isinstance(payload, dict):
            payload_dict = payload
        else:
            payload_dict = {}

        audit_record = Audit(
            user_id=int(user_id),
            action=str(action),
            resource_type=resource_type,
            resource_id=resource_id,
            payload_hash=payload_hash(payload_dict),
        )

        db.add(audit_record)
        await db.flush()

    except Exception as e:
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)


async def log_catalog_change(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    entry_id: int,
    payload: Any = None,
) -> None:
    await log_audit(db, user_id, action, payload, resource_type="catalog_entry", resource_id=entry_id)


async def log_quotation_change(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    quotation_id: int,
    payload: Any = None,
) -> None:
    await log_audit(db, user_id, action, payload, resource_type="quotation", resource_id=quotation_id)


async def log_login(
    db: AsyncSession,
    user_id: int,
    username: str
) -> None:
    await log_audit(db, user_id, AuditAction.LOGIN, {"username": username}, resource_type="user", resource_id=user_id)
