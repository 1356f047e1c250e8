"""
Service wiring shared by the API and the command-line scripts
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from school_records.api.database.session import UnitOfWork, build_engine, build_sessionmaker
from school_records.api.services.audit_service import AuditService
from school_records.api.services.grading_service import GradingService
from school_records.api.services.identifier_service import IdentifierService
from school_records.api.services.sequence_store import SequenceStore
from school_records.api.services.tenant_directory import TenantDirectory
from school_records.config import Settings


@dataclass
class Services:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    unit_of_work: UnitOfWork
    directory: TenantDirectory
    audit: AuditService
    sequence_store: SequenceStore
    identifiers: IdentifierService
    grading: GradingService


def build_services(settings: Settings) -> Services:
    """One engine per process; every service shares its unit of work"""
    engine = build_engine(settings)
    session_factory = build_sessionmaker(engine)
    unit_of_work = UnitOfWork(session_factory, settings.lock_timeout_ms)
    directory = TenantDirectory(unit_of_work)
    audit = AuditService(unit_of_work)
    sequence_store = SequenceStore(unit_of_work)

    return Services(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        unit_of_work=unit_of_work,
        directory=directory,
        audit=audit,
        sequence_store=sequence_store,
        identifiers=IdentifierService(sequence_store, directory, settings),
        grading=GradingService(unit_of_work, audit),
    )
