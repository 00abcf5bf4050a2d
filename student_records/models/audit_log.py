from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from student_records.models.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String, nullable=False)  # CREATE / UPDATE / DELETE
    entity_type = Column(String, nullable=False)  # student / academic_record
    entity_id = Column(Integer, nullable=False)
    changes = Column(Text, nullable=True)  # JSON
    created_at = Column(DateTime, default=datetime.utcnow)
