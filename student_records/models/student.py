import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from student_records.models.base import Base


class StudentStatus(str, enum.Enum):
    active = "active"
    graduated = "graduated"
    suspended = "suspended"
    withdrawn = "withdrawn"


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(String, nullable=False, index=True)  # school-issued
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    enrollment_date = Column(Date, nullable=True)
    major = Column(String, nullable=True)
    current_gpa = Column(Float, nullable=True)
    status = Column(Enum(StudentStatus, name="student_status"), nullable=False, default=StudentStatus.active)
    address = Column(Text, nullable=True)
    emergency_contact = Column(JSON, nullable=True)  # {name, phone, relationship}
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    academic_records = relationship(
        "AcademicRecord",
        back_populates="student",
        order_by="(AcademicRecord.year.desc(), AcademicRecord.semester.desc())",
    )
    documents = relationship(
        "Document",
        back_populates="student",
        order_by="Document.uploaded_at.desc()",
    )
    created_by = relationship("User")


# Identifying fields are unique among live rows only, so a soft-deleted
# student's id or email can be reused.
Index(
    "uq_students_student_id_live",
    Student.student_id,
    unique=True,
    postgresql_where=Student.is_deleted.is_(False),
    sqlite_where=Student.is_deleted.is_(False),
)
Index(
    "uq_students_email_live",
    Student.email,
    unique=True,
    postgresql_where=Student.is_deleted.is_(False),
    sqlite_where=Student.is_deleted.is_(False),
)
