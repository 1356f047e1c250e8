"""
Audit trail for administrative changes

record() writes inside the caller's transaction, so the audit row commits or
rolls back together with the change it describes (sequence resets, band
replacements). log_change() is the free-standing side channel: it uses its
own transaction and a failure there is logged, never raised.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_records.api.database.models import AuditLog
from school_records.api.database.session import UnitOfWork

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    @staticmethod
    async def record(
        session: AsyncSession,
        tenant_id: UUID,
        actor: str,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            tenant_id=tenant_id,
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
        )
        session.add(entry)
        await session.flush()
        return entry

    async def log_change(
        self,
        tenant_id: UUID,
        actor: str,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Best-effort audit entry in its own transaction; False when it could not be written"""

        async def _write(session: AsyncSession) -> None:
            await self.record(session, tenant_id, actor, action, resource_type, resource_id, details)

        try:
            await self.unit_of_work.with_transaction(_write)
        except SQLAlchemyError as exc:
            logger.error(f"✗ Audit log write failed for {action} ({resource_type}:{resource_id}): {exc}")
            return False
        return True

    async def list_entries(
        self,
        tenant_id: UUID,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        async def _query(session: AsyncSession) -> List[AuditLog]:
            stmt = select(AuditLog).where(AuditLog.tenant_id == tenant_id)
            if action:
                stmt = stmt.where(AuditLog.action == action)
            stmt = stmt.order_by(AuditLog.created_at.desc()).limit(limit)
            result = await session.execute(stmt)
            return list(result.scalars().all())

        return await self.unit_of_work.with_transaction(_query)
