from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from student_records.models.base import Base


class AcademicRecord(Base):
    __tablename__ = "academic_records"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    semester = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    course_code = Column(String, nullable=False)
    course_name = Column(String, nullable=False)
    grade = Column(String, nullable=False)
    credits = Column(Integer, nullable=False)
    gpa_contribution = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    student = relationship("Student", back_populates="academic_records")
