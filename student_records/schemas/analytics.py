from datetime import date

from pydantic import BaseModel


class DashboardOverview(BaseModel):
    total_students: int
    active_students: int
    graduated_students: int
    suspended_students: int
    withdrawn_students: int
    average_gpa: float
    recent_enrollments: int  # created in the last 30 days


class MajorCount(BaseModel):
    major: str
    count: int


class DashboardResponse(BaseModel):
    overview: DashboardOverview
    major_distribution: list[MajorCount]


class GpaBucket(BaseModel):
    range: str
    count: int


class MajorPerformance(BaseModel):
    major: str
    average_gpa: float
    student_count: int


class TrendsResponse(BaseModel):
    gpa_distribution: list[GpaBucket]
    performance_by_major: list[MajorPerformance]


class Cohort(BaseModel):
    year: int | str  # "Unknown" when enrollment date is missing
    total_students: int
    average_gpa: float | None = None
    active_count: int
    graduated_count: int


class AtRiskStudent(BaseModel):
    id: int
    student_id: str
    first_name: str
    last_name: str
    email: str
    major: str | None = None
    current_gpa: float | None = None
    enrollment_date: date | None = None
    risk_level: str  # critical / high / medium / unknown
