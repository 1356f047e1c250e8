from .models import (
    AggregationConfig,
    AuditLog,
    Base,
    Branch,
    GradingRange,
    GradingSystem,
    SequenceCounter,
    Tenant,
    TermConfig,
)
from .session import UnitOfWork, build_engine, build_sessionmaker, init_models
