from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from student_records.models.student import Student, StudentStatus
from student_records.schemas.analytics import (
    AtRiskStudent,
    Cohort,
    DashboardOverview,
    DashboardResponse,
    GpaBucket,
    MajorCount,
    MajorPerformance,
    TrendsResponse,
)
from student_records.services.students import live_students

AT_RISK_GPA = 2.0

# (label, lower bound inclusive, upper bound exclusive); the last bucket
# reaches past 4.0 so a perfect GPA is counted.
GPA_BUCKETS = [
    ("0.0-1.0", 0.0, 1.0),
    ("1.0-2.0", 1.0, 2.0),
    ("2.0-2.5", 2.0, 2.5),
    ("2.5-3.0", 2.5, 3.0),
    ("3.0-3.5", 3.0, 3.5),
    ("3.5-4.0", 3.5, 4.01),
]


def get_dashboard(db: Session) -> DashboardResponse:
    status_counts = dict(
        db.query(Student.status, func.count(Student.id))
        .filter(live_students())
        .group_by(Student.status)
        .all()
    )
    total = sum(status_counts.values())
    avg_gpa = (
        db.query(func.avg(Student.current_gpa))
        .filter(live_students(), Student.current_gpa.isnot(None))
        .scalar()
    )
    recent = (
        db.query(func.count(Student.id))
        .filter(live_students(), Student.created_at >= datetime.utcnow() - timedelta(days=30))
        .scalar()
    )
    count = func.count(Student.id)
    majors = (
        db.query(Student.major, count)
        .filter(live_students(), Student.major.isnot(None))
        .group_by(Student.major)
        .order_by(count.desc(), Student.major)
        .limit(10)
        .all()
    )
    return DashboardResponse(
        overview=DashboardOverview(
            total_students=total,
            active_students=status_counts.get(StudentStatus.active, 0),
            graduated_students=status_counts.get(StudentStatus.graduated, 0),
            suspended_students=status_counts.get(StudentStatus.suspended, 0),
            withdrawn_students=status_counts.get(StudentStatus.withdrawn, 0),
            average_gpa=round(avg_gpa, 2) if avg_gpa else 0,
            recent_enrollments=recent or 0,
        ),
        major_distribution=[MajorCount(major=major or "Undeclared", count=n) for major, n in majors],
    )


def get_trends(db: Session) -> TrendsResponse:
    gpas = [
        gpa
        for (gpa,) in db.query(Student.current_gpa)
        .filter(live_students(), Student.current_gpa.isnot(None))
        .all()
    ]
    distribution = [
        GpaBucket(range=label, count=sum(1 for g in gpas if low <= g < high))
        for label, low, high in GPA_BUCKETS
    ]
    by_major = (
        db.query(Student.major, func.avg(Student.current_gpa), func.count(Student.id))
        .filter(live_students(), Student.major.isnot(None), Student.current_gpa.isnot(None))
        .group_by(Student.major)
        .order_by(Student.major)
        .all()
    )
    return TrendsResponse(
        gpa_distribution=distribution,
        performance_by_major=[
            MajorPerformance(major=major, average_gpa=round(avg or 0, 2), student_count=n)
            for major, avg, n in by_major
        ],
    )


def get_cohorts(db: Session) -> list[Cohort]:
    students = (
        db.query(Student.enrollment_date, Student.current_gpa, Student.status)
        .filter(live_students())
        .all()
    )
    groups: dict[int, list] = {}
    for enrollment_date, gpa, status in students:
        year = enrollment_date.year if enrollment_date else 0
        groups.setdefault(year, []).append((gpa, status))

    cohorts = []
    for year in sorted(groups, reverse=True):
        members = groups[year]
        gpas = [gpa for gpa, _ in members if gpa is not None]
        cohorts.append(
            Cohort(
                year=year or "Unknown",
                total_students=len(members),
                average_gpa=round(sum(gpas) / len(gpas), 2) if gpas else None,
                active_count=sum(1 for _, s in members if s == StudentStatus.active),
                graduated_count=sum(1 for _, s in members if s == StudentStatus.graduated),
            )
        )
    return cohorts


def at_risk_level(gpa: float | None) -> str:
    """Risk tier for the at-risk listing (separate from the analyzer's table)."""
    if gpa is None:
        return "unknown"
    if gpa < 1.0:
        return "critical"
    if gpa < 1.5:
        return "high"
    return "medium"


def get_at_risk_students(db: Session) -> list[AtRiskStudent]:
    students = (
        db.query(Student)
        .filter(
            live_students(),
            Student.status == StudentStatus.active,
            (Student.current_gpa < AT_RISK_GPA) | Student.current_gpa.is_(None),
        )
        .order_by(Student.current_gpa.asc().nulls_last(), Student.id.asc())
        .all()
    )
    return [
        AtRiskStudent(
            id=s.id,
            student_id=s.student_id,
            first_name=s.first_name,
            last_name=s.last_name,
            email=s.email,
            major=s.major,
            current_gpa=s.current_gpa,
            enrollment_date=s.enrollment_date,
            risk_level=at_risk_level(s.current_gpa),
        )
        for s in students
    ]
