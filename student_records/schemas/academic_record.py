from datetime import datetime

from pydantic import BaseModel, Field


class AcademicRecordCreateRequest(BaseModel):
    semester: str = Field(..., min_length=1)
    year: int = Field(..., ge=2000, le=2100)
    course_code: str = Field(..., min_length=1)
    course_name: str = Field(..., min_length=1)
    grade: str = Field(..., min_length=1)
    credits: int = Field(..., ge=0)
    gpa_contribution: float | None = Field(None, ge=0.0, le=4.0)


class AcademicRecordResponse(AcademicRecordCreateRequest):
    id: int
    student_id: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
