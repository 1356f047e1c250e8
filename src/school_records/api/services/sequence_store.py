"""
SEQUENCE STORE - Durable per-tenant, per-scope counters

next_value() is the only path that issues numbers. It increments by exactly
one inside a single transaction and returns the new value:

✅ PostgreSQL / SQLite: one INSERT ... ON CONFLICT (tenant_id, scope_key)
   DO UPDATE SET current_value = current_value + 1 RETURNING current_value.
   The first call for a key inserts 1. Concurrent callers serialise on the
   counter row (PostgreSQL) or the database write lock (SQLite).
✅ Other dialects: SELECT ... FOR UPDATE, create the row when missing,
   increment, flush.

Counter values are never cached. Storage errors and lock timeouts surface as
SequenceUnavailable with the transaction rolled back, so no value is issued;
the store does not retry.
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_records.api.database.models import SequenceCounter, utcnow
from school_records.api.database.session import UnitOfWork
from school_records.api.services.audit_service import AuditService
from school_records.exceptions import SequenceUnavailable

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SequenceStore:
    """Atomic increment-and-read over the sequence_counters table"""

    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    async def _run(self, fn, description: str):
        try:
            return await self.unit_of_work.with_transaction(fn, lock_rows=True)
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            logger.error(f"✗ Sequence store unavailable during {description}: {exc}")
            raise SequenceUnavailable(f"Could not {description}: {exc}") from exc

    @staticmethod
    async def _locked_counter(
        session: AsyncSession, tenant_id: UUID, scope_key: str
    ) -> Optional[SequenceCounter]:
        result = await session.execute(
            select(SequenceCounter)
            .where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.scope_key == scope_key,
            )
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def _upsert_increment(session: AsyncSession, tenant_id: UUID, scope_key: str) -> int:
        insert = UPSERT_DIALECTS[session.get_bind().dialect.name]
        now = utcnow()
        stmt = insert(SequenceCounter).values(
            tenant_id=tenant_id,
            scope_key=scope_key,
            current_value=1,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SequenceCounter.tenant_id, SequenceCounter.scope_key],
            set_={
                "current_value": SequenceCounter.current_value + 1,
                "updated_at": now,
            },
        ).returning(SequenceCounter.current_value)
        result = await session.execute(stmt)
        return result.scalar_one()

    async def _locked_increment(self, session: AsyncSession, tenant_id: UUID, scope_key: str) -> int:
        counter = await self._locked_counter(session, tenant_id, scope_key)
        if counter is None:
            counter = SequenceCounter(tenant_id=tenant_id, scope_key=scope_key, current_value=1)
            session.add(counter)
        else:
            counter.current_value += 1
        await session.flush()
        return counter.current_value

    async def next_value(self, tenant_id: UUID, scope_key: str) -> int:
        """
        Increment the (tenant, scope key) counter and return the new value

        Raises:
            SequenceUnavailable: storage error or lock timeout, nothing issued
        """

        async def _increment(session: AsyncSession) -> int:
            if session.get_bind().dialect.name in UPSERT_DIALECTS:
                return await self._upsert_increment(session, tenant_id, scope_key)
            return await self._locked_increment(session, tenant_id, scope_key)

        value = await self._run(_increment, f"increment {scope_key} for tenant {tenant_id}")
        logger.debug(f"Issued {scope_key} #{value} for tenant {tenant_id}")
        return value

    async def current_value(self, tenant_id: UUID, scope_key: str) -> Optional[int]:
        """Last issued value, None when nothing has been issued for the key yet"""

        async def _read(session: AsyncSession) -> Optional[int]:
            result = await session.execute(
                select(SequenceCounter.current_value).where(
                    SequenceCounter.tenant_id == tenant_id,
                    SequenceCounter.scope_key == scope_key,
                )
            )
            return result.scalar_one_or_none()

        return await self._run(_read, f"read {scope_key} for tenant {tenant_id}")

    async def _set_value(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        scope_key: str,
        new_value: int,
        actor: str,
        action: str,
        only_if_greater: bool = False,
    ) -> int:
        counter = await self._locked_counter(session, tenant_id, scope_key)
        previous = counter.current_value if counter is not None else 0

        if only_if_greater and new_value <= previous:
            return previous

        if counter is None:
            session.add(SequenceCounter(tenant_id=tenant_id, scope_key=scope_key, current_value=new_value))
        else:
            counter.current_value = new_value
        await session.flush()

        await AuditService.record(
            session,
            tenant_id=tenant_id,
            actor=actor,
            action=action,
            resource_type="sequence_counter",
            resource_id=scope_key,
            details={"old_value": previous, "new_value": new_value},
        )
        return previous

    async def reset(self, tenant_id: UUID, scope_key: str, new_value: int = 0, actor: str = "system") -> int:
        """
        Administrative reset of a counter, last write wins

        The audit entry is written in the same transaction as the change.

        Returns:
            The value the counter held before the reset (0 when it did not exist)
        """
        if new_value < 0:
            raise ValueError(f"Counter value must be non-negative, got: {new_value}")

        async def _reset(session: AsyncSession) -> int:
            return await self._set_value(
                session, tenant_id, scope_key, new_value, actor, "SEQUENCE_RESET"
            )

        previous = await self._run(_reset, f"reset {scope_key} for tenant {tenant_id}")
        logger.warning(
            f"⚠️ Sequence {scope_key} for tenant {tenant_id} reset by {actor}: {previous} -> {new_value}"
        )
        return previous

    async def raise_to(self, tenant_id: UUID, scope_key: str, value: int, actor: str = "system") -> int:
        """
        Move a counter up to `value` when it is behind; never moves it down

        Returns:
            The value the counter held before the call
        """

        async def _raise(session: AsyncSession) -> int:
            return await self._set_value(
                session, tenant_id, scope_key, value, actor, "SEQUENCE_RECONCILE", only_if_greater=True
            )

        previous = await self._run(_raise, f"reconcile {scope_key} for tenant {tenant_id}")
        if value > previous:
            logger.warning(
                f"⚠️ Sequence {scope_key} for tenant {tenant_id} raised by {actor}: {previous} -> {value}"
            )
        return previous
