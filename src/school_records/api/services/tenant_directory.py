"""
Tenant directory - tenant and branch lookups for identifier formatting
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_records.api.database.models import Branch, Tenant
from school_records.api.database.session import UnitOfWork
from school_records.core.models.identifiers import FormatType, IdentifierFormatSpec
from school_records.exceptions import InvalidConfiguration, NotFound

logger = logging.getLogger(__name__)


class TenantDirectory:
    """Read-only view of tenants and their branches"""

    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    @staticmethod
    async def get_tenant(session: AsyncSession, tenant_id: UUID) -> Tenant:
        tenant = await session.get(Tenant, tenant_id)
        if tenant is None or not tenant.is_active:
            raise NotFound(f"Tenant {tenant_id} not found")
        return tenant

    @staticmethod
    async def get_branch(session: AsyncSession, tenant_id: UUID, branch_code: str) -> Branch:
        result = await session.execute(
            select(Branch).where(
                Branch.tenant_id == tenant_id,
                Branch.code == branch_code.strip().upper(),
            )
        )
        branch = result.scalar_one_or_none()
        if branch is None:
            raise NotFound(f"Branch {branch_code!r} not found for tenant {tenant_id}")
        return branch

    @staticmethod
    def format_type_for(tenant: Tenant) -> FormatType:
        try:
            return FormatType(tenant.admission_format_type)
        except ValueError as exc:
            raise InvalidConfiguration(
                f"Tenant {tenant.id} has unknown admission format {tenant.admission_format_type!r}"
            ) from exc

    @staticmethod
    def format_spec_for(
        tenant: Tenant,
        branch: Optional[Branch],
        zero_pad_width: int,
        format_type: Optional[FormatType] = None,
    ) -> IdentifierFormatSpec:
        """Build the tenant's format rules for one branch; format_type overrides the tenant's"""
        try:
            return IdentifierFormatSpec(
                format_type=format_type or TenantDirectory.format_type_for(tenant),
                separator=tenant.branch_separator or "-",
                scope_prefix=branch.code if branch is not None else None,
                zero_pad_width=zero_pad_width,
            )
        except ValueError as exc:
            raise InvalidConfiguration(f"Tenant {tenant.id} identifier format: {exc}") from exc

    async def lookup(self, tenant_id: UUID, branch_code: Optional[str] = None):
        """(tenant, branch) in a short read transaction; branch is None when no code given"""

        async def _read(session: AsyncSession):
            tenant = await self.get_tenant(session, tenant_id)
            branch = await self.get_branch(session, tenant_id, branch_code) if branch_code else None
            return tenant, branch

        return await self.unit_of_work.with_transaction(_read)
