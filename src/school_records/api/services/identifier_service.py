"""
IDENTIFIER SERVICE - Admission and staff numbers for a tenant

GENERATION FLOW:
1. Tenant (and branch) lookup in a short read transaction -> NotFound
2. Build the tenant's format rules (format type, separator, branch prefix)
3. SequenceStore.next_value() for the scope key in its own transaction
4. Format the committed value

The counter transaction starts with the increment itself, so nothing is
issued unless the increment committed, and a failure after step 3 can only
leave a gap, never a duplicate.

SCOPES:
✅ Admission numbers: key ADM:<year>, shared by every branch of the school
✅ Staff numbers: key STF, no year, never resets
"""

import logging
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from school_records.api.database.models import Branch, Tenant
from school_records.api.services.sequence_store import SequenceStore
from school_records.api.services.tenant_directory import TenantDirectory
from school_records.config import Settings
from school_records.core.identifier_formatter import format_identifier, parse_identifier
from school_records.core.models.identifiers import (
    ADMISSION_TOKEN,
    FormatType,
    IdentifierFormatSpec,
    IdentifierKind,
    IdentifierScope,
    ReconciliationResult,
)
from school_records.exceptions import InvalidConfiguration, MalformedIdentifier

logger = logging.getLogger(__name__)


class IdentifierService:
    """Generate, preview, reset and reconcile sequenced identifiers"""

    def __init__(self, store: SequenceStore, directory: TenantDirectory, settings: Settings):
        self.store = store
        self.directory = directory
        self.settings = settings

    def _format_spec(self, tenant: Tenant, branch: Optional[Branch], scope: IdentifierScope) -> IdentifierFormatSpec:
        if scope.kind is IdentifierKind.STAFF:
            return self.directory.format_spec_for(
                tenant, None, self.settings.staff_pad_width, FormatType.NO_SCOPE_PREFIX
            )

        format_type = self.directory.format_type_for(tenant)
        if format_type.uses_prefix and branch is None:
            raise InvalidConfiguration(
                f"Tenant {tenant.id} uses {format_type.value} admission numbers; a branch code is required"
            )
        return self.directory.format_spec_for(tenant, branch, self.settings.admission_pad_width)

    async def _resolve(self, tenant_id: UUID, scope: IdentifierScope) -> Tuple[Tenant, IdentifierFormatSpec]:
        tenant, branch = await self.directory.lookup(tenant_id, scope.branch_code)
        return tenant, self._format_spec(tenant, branch, scope)

    async def generate_identifier(self, tenant_id: UUID, scope: IdentifierScope) -> str:
        """
        Issue the next identifier for a scope

        Raises:
            NotFound: tenant or branch unknown
            InvalidConfiguration: tenant format needs a branch prefix and none was given
            SequenceUnavailable: counter transaction failed, nothing issued
        """
        _, spec = await self._resolve(tenant_id, scope)
        value = await self.store.next_value(tenant_id, scope.scope_key)
        identifier = format_identifier(value, spec, scope.year, scope.kind.token)

        logger.info(f"✓ Generated {scope.kind.value.lower()} number {identifier} for tenant {tenant_id}")
        return identifier

    async def generate_admission_number(self, tenant_id: UUID, branch_code: Optional[str], academic_year: int) -> str:
        scope = IdentifierScope(
            kind=IdentifierKind.ADMISSION, academic_year=academic_year, branch_code=branch_code
        )
        return await self.generate_identifier(tenant_id, scope)

    async def generate_staff_number(self, tenant_id: UUID) -> str:
        return await self.generate_identifier(tenant_id, IdentifierScope(kind=IdentifierKind.STAFF))

    async def preview_next_identifier(self, tenant_id: UUID, scope: IdentifierScope) -> Optional[str]:
        """Identifier the next generate call would return; None before the first issue"""
        _, spec = await self._resolve(tenant_id, scope)
        current = await self.store.current_value(tenant_id, scope.scope_key)
        if current is None:
            return None
        return format_identifier(current + 1, spec, scope.year, scope.kind.token)

    async def preview_branches(self, tenant_id: UUID, academic_year: int) -> List[dict]:
        """Next admission number per branch of the tenant"""
        tenant, _ = await self.directory.lookup(tenant_id)
        current = await self.store.current_value(tenant_id, f"{ADMISSION_TOKEN}:{academic_year}")

        previews = []
        for branch in sorted(tenant.branches, key=lambda b: b.code):
            next_identifier = None
            if current is not None:
                spec = self.directory.format_spec_for(tenant, branch, self.settings.admission_pad_width)
                next_identifier = format_identifier(current + 1, spec, academic_year, ADMISSION_TOKEN)
            previews.append(
                {
                    "branch_code": branch.code,
                    "branch_name": branch.name,
                    "next_identifier": next_identifier,
                }
            )
        return previews

    async def reset_sequence(
        self,
        tenant_id: UUID,
        scope: IdentifierScope,
        value: int = 0,
        actor: str = "system",
    ) -> int:
        """Administrative reset; returns the previous counter value"""
        await self.directory.lookup(tenant_id)
        return await self.store.reset(tenant_id, scope.scope_key, value, actor)

    async def reconcile_sequence(
        self,
        tenant_id: UUID,
        academic_year: int,
        existing_identifiers: Iterable[str],
        actor: str = "system",
    ) -> ReconciliationResult:
        """
        Bring the admission counter for a year up to the highest issued number

        Used after imports or manual edits left the counter behind the
        identifiers already in use. Identifiers for other years are ignored
        and unparseable ones are skipped. The counter is never lowered.
        """
        tenant, _ = await self.directory.lookup(tenant_id)
        format_type = self.directory.format_type_for(tenant)
        separator = tenant.branch_separator or self.settings.default_separator
        scope_key = IdentifierScope(academic_year=academic_year).scope_key

        max_issued = 0
        skipped = 0
        for identifier in existing_identifiers:
            try:
                parsed = parse_identifier(
                    identifier.strip(),
                    format_type,
                    separator,
                    ADMISSION_TOKEN,
                    self.settings.admission_pad_width,
                )
            except MalformedIdentifier:
                skipped += 1
                continue
            if parsed.year == academic_year:
                max_issued = max(max_issued, parsed.sequence)

        if skipped:
            logger.warning(f"⚠️ Skipped {skipped} identifiers that do not match {format_type.value}")

        previous = await self.store.raise_to(tenant_id, scope_key, max_issued, actor)
        updated = max_issued > previous
        result = ReconciliationResult(
            scope_key=scope_key,
            counter_value=previous,
            max_issued=max_issued,
            new_value=max_issued if updated else previous,
            updated=updated,
            skipped=skipped,
        )

        if updated:
            logger.info(f"✓ {scope_key} counter raised from {previous} to {max_issued}")
        else:
            logger.info(f"✓ {scope_key} counter already at {previous} (max issued {max_issued})")
        return result


__all__ = ["IdentifierService"]
