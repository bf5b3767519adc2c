"""
Append-only audit trail.

The recorder only ever INSERTs and SELECTs; there is no update or delete
path. Each write runs in its own session so it never shares a transaction
with the moderation change it describes.
"""

import logging
from math import ceil
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from feedback_system.database import async_session_maker
from feedback_system.errors import ValidationError
from feedback_system.models import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES, AuditLog
from feedback_system.schemas import AdminIdentity, AuditLogRead, Pagination
from feedback_system.utils import utcnow

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class AuditRecorder:
    def __init__(self, session_factory: async_sessionmaker = async_session_maker):
        self._session_factory = session_factory

    async def record(
        self,
        action: str,
        entity_type: str,
        admin: AdminIdentity,
        entity_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLogRead:
        if action not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {action}")
        if entity_type not in AUDIT_ENTITY_TYPES:
            raise ValueError(f"Unknown audit entity type: {entity_type}")

        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            admin_id=admin.id,
            # Copied now so the record survives a later rename or removal
            admin_username=admin.username,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent[:512] if user_agent else None,
            timestamp=utcnow(),
        )
        async with self._session_factory() as session:
            session.add(entry)
            await session.commit()
            await session.refresh(entry)
        return AuditLogRead.model_validate(entry)

    async def record_safely(self, action: str, entity_type: str, admin: AdminIdentity, **kwargs) -> Optional[AuditLogRead]:
        """Best-effort record: failures are logged and swallowed."""
        try:
            return await self.record(action, entity_type, admin, **kwargs)
        except Exception:
            logger.exception(
                f"Audit log error: action={action} entity={entity_type}:{kwargs.get('entity_id')} admin={admin.id}"
            )
            return None

    async def list(
        self,
        action: Optional[str] = None,
        admin_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[AuditLogRead], Pagination]:
        if action is not None and action not in AUDIT_ACTIONS:
            raise ValidationError(f"Invalid action filter. Valid actions are: {', '.join(AUDIT_ACTIONS)}.")
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        conditions = []
        if action:
            conditions.append(AuditLog.action == action)
        if admin_id is not None:
            conditions.append(AuditLog.admin_id == admin_id)

        async with self._session_factory() as session:
            total = (await session.execute(select(func.count(AuditLog.id)).where(*conditions))).scalar_one()
            result = await session.execute(
                select(AuditLog)
                .where(*conditions)
                .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            logs = [AuditLogRead.model_validate(row) for row in result.scalars().all()]

        pagination = Pagination(current_page=page, total_pages=ceil(total / limit) if total else 0, total=total)
        return logs, pagination


audit_recorder = AuditRecorder()


def get_audit_recorder() -> AuditRecorder:
    return audit_recorder
