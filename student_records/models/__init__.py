from student_records.models.academic_record import AcademicRecord
from student_records.models.ai_interaction import AIInteraction
from student_records.models.audit_log import AuditLog
from student_records.models.document import Document
from student_records.models.student import Student, StudentStatus
from student_records.models.user import User, UserRole

__all__ = [
    "AcademicRecord",
    "AIInteraction",
    "AuditLog",
    "Document",
    "Student",
    "StudentStatus",
    "User",
    "UserRole",
]
