"""
GRADING SERVICE - Tenant grading systems, aggregation configs and term weights

RESPONSIBILITIES:
✅ Default grading systems (SUMMATIVE, CBC) created on first use, exactly once
   per tenant and type even when two requests race
✅ Aggregation config lookup: fetch (tenant, assessment type) candidates,
   then pick the most specific with resolve_grading_config()
✅ Config saves validated with ensure_valid_config(); a save replaces the
   existing config of the same specificity tier
✅ Band replacement validated with validate_ranges() and audited
✅ Term weights with the 40 / 60 fallback
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school_records.api.database.models import AggregationConfig
from school_records.api.database.models import GradingRange
from school_records.api.database.models import GradingSystem as GradingSystemRow
from school_records.api.database.models import TermConfig as TermConfigRow
from school_records.api.database.session import UnitOfWork
from school_records.api.services.audit_service import AuditService
from school_records.api.services.tenant_directory import TenantDirectory
from school_records.core.calculators.aggregation import ensure_valid_config
from school_records.core.calculators.resolver import resolve_grading_config, resolve_or_default
from school_records.core.calculators.rubric import (
    DEFAULT_SYSTEM_NAMES,
    default_ranges,
    map_percentage_to_band,
    validate_ranges,
)
from school_records.core.calculators.term_score import DEFAULT_TERM_CONFIG, TermScoreCalculator
from school_records.core.models.grading import (
    GradingConfig,
    GradingSystem,
    GradingSystemType,
    RubricRange,
    StrategyType,
    TermConfig,
)

logger = logging.getLogger(__name__)


def _to_config(row: AggregationConfig) -> GradingConfig:
    try:
        strategy = StrategyType(row.strategy)
    except ValueError:
        logger.warning(f"⚠️ Stored config {row.id} has unknown strategy {row.strategy!r} - using SIMPLE_AVERAGE")
        strategy = StrategyType.SIMPLE_AVERAGE

    return GradingConfig(
        tenant_id=row.tenant_id,
        assessment_type=row.assessment_type,
        grade=row.grade,
        learning_area=row.learning_area,
        strategy=strategy,
        n=row.n_value,
        weight=row.weight,
    )


def _range_rows(ranges: Sequence[RubricRange]) -> List[GradingRange]:
    return [
        GradingRange(
            label=r.label,
            min_percentage=r.min_percentage,
            max_percentage=r.max_percentage,
            code=r.code,
            points=r.points,
            color=r.color,
            description=r.description,
        )
        for r in ranges
    ]


class GradingService:
    """Persistence side of the grading engine for one deployment"""

    def __init__(self, unit_of_work: UnitOfWork, audit: Optional[AuditService] = None):
        self.unit_of_work = unit_of_work
        self.audit = audit or AuditService(unit_of_work)

    # ------------------------------------------------------------------
    # Grading systems
    # ------------------------------------------------------------------

    @staticmethod
    async def _find_default(
        session: AsyncSession, tenant_id: UUID, system_type: GradingSystemType
    ) -> Optional[GradingSystemRow]:
        result = await session.execute(
            select(GradingSystemRow).where(
                GradingSystemRow.tenant_id == tenant_id,
                GradingSystemRow.default_key == system_type.value,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_default_system(
        self, tenant_id: UUID, system_type: GradingSystemType = GradingSystemType.SUMMATIVE
    ) -> GradingSystem:
        """
        Return the tenant's default system of a type, seeding it when missing

        Idempotent: the unique (tenant_id, default_key) constraint lets only
        one concurrent creator win; the loser re-reads the winner's row.
        """
        system_type = GradingSystemType(system_type)

        async def _find(session: AsyncSession) -> Optional[GradingSystem]:
            await TenantDirectory.get_tenant(session, tenant_id)
            row = await self._find_default(session, tenant_id, system_type)
            return GradingSystem.model_validate(row) if row is not None else None

        async def _create(session: AsyncSession) -> GradingSystem:
            row = GradingSystemRow(
                tenant_id=tenant_id,
                name=DEFAULT_SYSTEM_NAMES[system_type],
                type=system_type.value,
                is_default=True,
                default_key=system_type.value,
                active=True,
                ranges=_range_rows(default_ranges(system_type)),
            )
            session.add(row)
            await session.flush()
            return GradingSystem.model_validate(row)

        existing = await self.unit_of_work.with_transaction(_find)
        if existing is not None:
            return existing

        try:
            created = await self.unit_of_work.with_transaction(_create)
        except IntegrityError:
            logger.info(f"ℹ Default {system_type.value} system for {tenant_id} created concurrently - re-reading")
            existing = await self.unit_of_work.with_transaction(_find)
            if existing is None:
                raise
            return existing

        logger.info(f"✓ Created default {system_type.value} grading system for tenant {tenant_id}")
        return created

    async def get_ranges(
        self, tenant_id: UUID, system_type: GradingSystemType = GradingSystemType.SUMMATIVE
    ) -> List[RubricRange]:
        system = await self.get_or_create_default_system(tenant_id, system_type)
        return system.ranges

    async def map_percentage(
        self,
        tenant_id: UUID,
        percentage: float,
        system_type: GradingSystemType = GradingSystemType.SUMMATIVE,
    ) -> RubricRange:
        """Band for a percentage using the tenant's default system of a type"""
        ranges = await self.get_ranges(tenant_id, system_type)
        return map_percentage_to_band(percentage, ranges)

    async def replace_ranges(
        self,
        tenant_id: UUID,
        system_type: GradingSystemType,
        ranges: Sequence[RubricRange],
        actor: str = "system",
    ) -> GradingSystem:
        """
        Replace the bands of the tenant's default system

        Raises:
            InvalidConfiguration: bands leave gaps, overlap or miss 0 / 100
        """
        system_type = GradingSystemType(system_type)
        ordered = validate_ranges(ranges)
        await self.get_or_create_default_system(tenant_id, system_type)

        async def _replace(session: AsyncSession) -> GradingSystem:
            row = await self._find_default(session, tenant_id, system_type)
            old_codes = [r.code for r in row.ranges]
            row.ranges = _range_rows(ordered)
            await session.flush()

            await AuditService.record(
                session,
                tenant_id=tenant_id,
                actor=actor,
                action="GRADING_RANGES_REPLACED",
                resource_type="grading_system",
                resource_id=str(row.id),
                details={"old_value": old_codes, "new_value": [r.code for r in ordered]},
            )
            return GradingSystem.model_validate(row)

        system = await self.unit_of_work.with_transaction(_replace)
        logger.info(f"✓ Replaced {len(ordered)} {system_type.value} bands for tenant {tenant_id}")
        return system

    # ------------------------------------------------------------------
    # Aggregation configs
    # ------------------------------------------------------------------

    async def list_aggregation_configs(
        self, tenant_id: UUID, assessment_type: Optional[str] = None
    ) -> List[GradingConfig]:
        async def _query(session: AsyncSession) -> List[GradingConfig]:
            stmt = select(AggregationConfig).where(AggregationConfig.tenant_id == tenant_id)
            if assessment_type:
                stmt = stmt.where(AggregationConfig.assessment_type == assessment_type)
            result = await session.execute(stmt.order_by(AggregationConfig.created_at))
            return [_to_config(row) for row in result.scalars().all()]

        return await self.unit_of_work.with_transaction(_query)

    async def get_aggregation_config(
        self,
        tenant_id: UUID,
        assessment_type: str,
        grade: Optional[str] = None,
        learning_area: Optional[str] = None,
    ) -> Optional[GradingConfig]:
        """Most specific stored config, None when the tenant has none for the type"""
        candidates = await self.list_aggregation_configs(tenant_id, assessment_type)
        return resolve_grading_config(candidates, assessment_type, grade, learning_area)

    async def resolve_or_default(
        self,
        tenant_id: UUID,
        assessment_type: str,
        grade: Optional[str] = None,
        learning_area: Optional[str] = None,
    ) -> GradingConfig:
        candidates = await self.list_aggregation_configs(tenant_id, assessment_type)
        return resolve_or_default(candidates, assessment_type, grade, learning_area)

    async def save_aggregation_config(self, config: GradingConfig, actor: str = "system") -> GradingConfig:
        """
        Validate and store a config, replacing the one in the same tier

        A unique index on the tier makes concurrent saves for the same tier
        collide; the loser retries once and updates the winner's row.

        Raises:
            InvalidConfiguration: BEST_N / DROP_LOWEST_N without positive n, negative weight
            NotFound: tenant unknown
        """
        ensure_valid_config(config)
        if config.tenant_id is None:
            raise ValueError("Aggregation config needs a tenant_id to be saved")

        async def _save(session: AsyncSession) -> GradingConfig:
            await TenantDirectory.get_tenant(session, config.tenant_id)
            result = await session.execute(
                select(AggregationConfig).where(
                    AggregationConfig.tenant_id == config.tenant_id,
                    AggregationConfig.assessment_type == config.assessment_type,
                    AggregationConfig.grade.is_(None) if not config.grade else AggregationConfig.grade == config.grade,
                    AggregationConfig.learning_area.is_(None)
                    if not config.learning_area
                    else AggregationConfig.learning_area == config.learning_area,
                )
            )
            row = result.scalars().first()
            if row is None:
                row = AggregationConfig(
                    tenant_id=config.tenant_id,
                    assessment_type=config.assessment_type,
                    grade=config.grade or None,
                    learning_area=config.learning_area or None,
                )
                session.add(row)

            row.strategy = config.strategy.value
            row.n_value = config.n if config.strategy.requires_n else None
            row.weight = config.weight
            await session.flush()
            return _to_config(row)

        try:
            saved = await self.unit_of_work.with_transaction(_save)
        except IntegrityError:
            # Another save created the tier row first; update it instead
            logger.info(f"ℹ {config.assessment_type} config tier saved concurrently - re-reading")
            saved = await self.unit_of_work.with_transaction(_save)
        logger.info(
            f"✓ Saved {saved.strategy.value} config for {saved.assessment_type} "
            f"(grade={saved.grade}, area={saved.learning_area})"
        )
        await self.audit.log_change(
            config.tenant_id,
            actor,
            "AGGREGATION_CONFIG_SAVED",
            resource_type="aggregation_config",
            resource_id=config.assessment_type,
            details=saved.model_dump(mode="json"),
        )
        return saved

    async def calculator_for(self, tenant_id: UUID) -> TermScoreCalculator:
        """TermScoreCalculator loaded with every config of the tenant"""
        return TermScoreCalculator(await self.list_aggregation_configs(tenant_id))

    # ------------------------------------------------------------------
    # Term weights
    # ------------------------------------------------------------------

    async def get_term_config(self, tenant_id: UUID, academic_year: int, term: str) -> TermConfig:
        """Stored formative / summative split, 40 / 60 when none is configured"""

        async def _query(session: AsyncSession) -> Optional[TermConfig]:
            result = await session.execute(
                select(TermConfigRow).where(
                    TermConfigRow.tenant_id == tenant_id,
                    TermConfigRow.academic_year == academic_year,
                    TermConfigRow.term == term,
                )
            )
            row = result.scalar_one_or_none()
            return TermConfig.model_validate(row) if row is not None else None

        config = await self.unit_of_work.with_transaction(_query)
        return config or DEFAULT_TERM_CONFIG

    async def save_term_config(
        self, tenant_id: UUID, academic_year: int, term: str, config: TermConfig
    ) -> TermConfig:
        async def _save(session: AsyncSession) -> TermConfig:
            await TenantDirectory.get_tenant(session, tenant_id)
            result = await session.execute(
                select(TermConfigRow).where(
                    TermConfigRow.tenant_id == tenant_id,
                    TermConfigRow.academic_year == academic_year,
                    TermConfigRow.term == term,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = TermConfigRow(tenant_id=tenant_id, academic_year=academic_year, term=term)
                session.add(row)
            row.formative_weight = config.formative_weight
            row.summative_weight = config.summative_weight
            await session.flush()
            return TermConfig.model_validate(row)

        return await self.unit_of_work.with_transaction(_save)


__all__ = ["GradingService"]
