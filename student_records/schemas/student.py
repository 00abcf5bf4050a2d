from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from student_records.models.student import StudentStatus
from student_records.schemas.academic_record import AcademicRecordResponse
from student_records.schemas.document import DocumentResponse


class EmergencyContact(BaseModel):
    name: str | None = None
    phone: str | None = None
    relationship: str | None = None


class StudentCreateRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    date_of_birth: date | None = None
    enrollment_date: date | None = None
    major: str | None = None
    current_gpa: float | None = Field(None, ge=0.0, le=4.0)
    status: StudentStatus = StudentStatus.active
    address: str | None = None
    emergency_contact: EmergencyContact | None = None


class StudentUpdateRequest(BaseModel):
    """All fields optional; only provided fields are written."""

    student_id: str | None = Field(None, min_length=1)
    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    enrollment_date: date | None = None
    major: str | None = None
    current_gpa: float | None = Field(None, ge=0.0, le=4.0)
    status: StudentStatus | None = None
    address: str | None = None
    emergency_contact: EmergencyContact | None = None


class StudentResponse(StudentCreateRequest):
    id: int
    email: str
    created_by_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class CreatorOut(BaseModel):
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None

    model_config = {"from_attributes": True}


class StudentDetailResponse(StudentResponse):
    academic_records: list[AcademicRecordResponse] = []
    documents: list[DocumentResponse] = []
    created_by: CreatorOut | None = None


class StudentListItem(StudentResponse):
    academic_record_count: int = 0
    document_count: int = 0


class StudentQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: str | None = None
    major: str | None = None
    status: StudentStatus | None = None
    first_name: str | None = None
    last_name: str | None = None
    sort_by: str = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    min_gpa: float | None = Field(None, ge=0.0, le=4.0)
    max_gpa: float | None = Field(None, ge=0.0, le=4.0)


class StudentPage(BaseModel):
    items: list[StudentListItem]
    total: int
    page: int
    limit: int
    total_pages: int


class StudentSummary(BaseModel):
    """Display projection used by search results and the query assistant."""

    id: int
    student_id: str
    first_name: str
    last_name: str
    email: str
    major: str | None = None
    current_gpa: float | None = None
    status: StudentStatus

    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    message: str


class BulkImportError(BaseModel):
    row: dict
    error: str


class BulkImportResponse(BaseModel):
    imported: int
    total: int
    errors: list[BulkImportError] = []
