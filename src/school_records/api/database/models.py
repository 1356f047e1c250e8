"""
Database models - multi-tenant counters, grading systems and audit trail

Tables:
- tenants / branches: directory data (format type, separator, branch codes)
- sequence_counters: one row per (tenant, scope key), only ever incremented
  or administratively reset, never deleted
- aggregation_configs: strategy per assessment type with optional grade /
  learning area specificity, at most one row per tier
- grading_systems / grading_ranges: rubric bands per tenant
- term_configs: formative / summative split per term
- audit_logs: administrative changes (old value, new value, actor, time)
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    admission_format_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="PREFIX_START"
    )
    branch_separator: Mapped[str] = mapped_column(String(1), nullable=False, default="-")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    branches: Mapped[List["Branch"]] = relationship(
        back_populates="tenant", cascade="all, delete-orphan", lazy="selectin"
    )


class Branch(Base):
    __tablename__ = "branches"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_branch_tenant_code"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    tenant: Mapped[Tenant] = relationship(back_populates="branches")


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"
    __table_args__ = (
        UniqueConstraint("tenant_id", "scope_key", name="uq_sequence_tenant_scope"),
        CheckConstraint("current_value >= 0", name="ck_sequence_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    scope_key: Mapped[str] = mapped_column(String(50), nullable=False)
    current_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class AggregationConfig(Base):
    __tablename__ = "aggregation_configs"
    __table_args__ = (
        Index("ix_aggregation_tenant_type", "tenant_id", "assessment_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    assessment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    grade: Mapped[Optional[str]] = mapped_column(String(50))
    learning_area: Mapped[Optional[str]] = mapped_column(String(100))
    strategy: Mapped[str] = mapped_column(String(30), nullable=False, default="SIMPLE_AVERAGE")
    n_value: Mapped[Optional[int]] = mapped_column(Integer)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


# NULL grade / learning area marks the wider tier; coalesce so NULLs still collide
Index(
    "uq_aggregation_config_tier",
    AggregationConfig.tenant_id,
    AggregationConfig.assessment_type,
    func.coalesce(AggregationConfig.grade, ""),
    func.coalesce(AggregationConfig.learning_area, ""),
    unique=True,
)


class GradingSystem(Base):
    __tablename__ = "grading_systems"
    __table_args__ = (
        # default_key is the system type for default systems and NULL otherwise,
        # so each tenant has at most one default per type
        UniqueConstraint("tenant_id", "default_key", name="uq_grading_system_default"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    default_key: Mapped[Optional[str]] = mapped_column(String(20))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    ranges: Mapped[List["GradingRange"]] = relationship(
        back_populates="system",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="GradingRange.min_percentage.desc()",
    )


class GradingRange(Base):
    __tablename__ = "grading_ranges"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    system_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("grading_systems.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    min_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    max_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[Optional[str]] = mapped_column(String(7))
    description: Mapped[Optional[str]] = mapped_column(String(255))

    system: Mapped[GradingSystem] = relationship(back_populates="ranges")


class TermConfig(Base):
    __tablename__ = "term_configs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "academic_year", "term", name="uq_term_config"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)
    term: Mapped[str] = mapped_column(String(20), nullable=False)
    formative_weight: Mapped[float] = mapped_column(Float, nullable=False, default=40.0)
    summative_weight: Mapped[float] = mapped_column(Float, nullable=False, default=60.0)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_tenant_action", "tenant_id", "action"),
        Index("ix_audit_tenant_created", "tenant_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_type: Mapped[Optional[str]] = mapped_column(String(50))
    resource_id: Mapped[Optional[str]] = mapped_column(String(100))
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
