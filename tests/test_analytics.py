from datetime import date

from conftest import make_student
from student_records.models import StudentStatus
from student_records.services.analytics import (
    at_risk_level,
    get_at_risk_students,
    get_cohorts,
    get_dashboard,
    get_trends,
)


class TestAtRisk:
    def test_listing_uses_its_own_thresholds(self, db):
        make_student(db, "A", major="CS", current_gpa=3.9)
        make_student(db, "B", major="Math", current_gpa=1.5, status=StudentStatus.active)
        make_student(db, "C", major="CS", current_gpa=1.0, is_deleted=True)

        listing = get_at_risk_students(db)

        assert [(s.student_id, s.risk_level) for s in listing] == [("B", "medium")]

    def test_ordered_by_gpa_with_missing_last(self, db):
        make_student(db, "N", current_gpa=None)
        make_student(db, "H", current_gpa=1.2)
        make_student(db, "Z", current_gpa=0.5)
        make_student(db, "G", current_gpa=0.9, status=StudentStatus.suspended)

        listing = get_at_risk_students(db)

        assert [s.student_id for s in listing] == ["Z", "H", "N"]
        assert [s.risk_level for s in listing] == ["critical", "high", "unknown"]

    def test_boundaries(self):
        assert at_risk_level(0.99) == "critical"
        assert at_risk_level(1.0) == "high"
        assert at_risk_level(1.5) == "medium"
        assert at_risk_level(None) == "unknown"


def test_dashboard_counts_live_students(db):
    make_student(db, "S1", major="CS", current_gpa=3.0)
    make_student(db, "S2", major="CS", current_gpa=2.0, status=StudentStatus.graduated)
    make_student(db, "S3", major="Art", current_gpa=4.0, is_deleted=True)

    dashboard = get_dashboard(db)

    assert dashboard.overview.total_students == 2
    assert dashboard.overview.active_students == 1
    assert dashboard.overview.graduated_students == 1
    assert dashboard.overview.average_gpa == 2.5
    assert dashboard.overview.recent_enrollments == 2
    assert [(m.major, m.count) for m in dashboard.major_distribution] == [("CS", 2)]


def test_empty_dashboard_average_is_zero(db):
    assert get_dashboard(db).overview.average_gpa == 0


def test_trends_bucket_perfect_gpa(db):
    make_student(db, "S1", major="CS", current_gpa=4.0)
    make_student(db, "S2", major="CS", current_gpa=3.0)

    trends = get_trends(db)

    buckets = {b.range: b.count for b in trends.gpa_distribution}
    assert buckets["3.5-4.0"] == 1
    assert buckets["3.0-3.5"] == 1
    assert trends.performance_by_major[0].average_gpa == 3.5


def test_cohorts_group_by_enrollment_year(db):
    make_student(db, "S1", enrollment_date=date(2022, 9, 1), current_gpa=3.0)
    make_student(db, "S2", enrollment_date=date(2022, 1, 15), current_gpa=2.0, status=StudentStatus.graduated)
    make_student(db, "S3", enrollment_date=date(2024, 9, 1))
    make_student(db, "S4")

    cohorts = get_cohorts(db)

    assert [c.year for c in cohorts] == [2024, 2022, "Unknown"]
    assert cohorts[1].average_gpa == 2.5
    assert cohorts[1].graduated_count == 1
    assert cohorts[0].average_gpa is None
