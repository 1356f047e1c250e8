from .audit_service import AuditService
from .grading_service import GradingService
from .identifier_service import IdentifierService
from .sequence_store import SequenceStore
from .tenant_directory import TenantDirectory
