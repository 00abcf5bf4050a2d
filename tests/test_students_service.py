"""
Student store: filtering, pagination, soft delete and live-row uniqueness.
"""

import pytest

from conftest import make_student
from student_records.core.errors import Conflict, NotFound, ValidationFailed
from student_records.models import AuditLog, Student, StudentStatus
from student_records.schemas.academic_record import AcademicRecordCreateRequest
from student_records.schemas.student import StudentCreateRequest, StudentQuery, StudentUpdateRequest
from student_records.services import students as students_service
from student_records.services.students import (
    create_academic_record,
    create_student,
    find_students,
    get_student,
    list_academic_records,
    search_students,
    soft_delete_student,
    update_student,
)


def _payload(student_id, email=None, **fields):
    fields.setdefault("first_name", "Ada")
    fields.setdefault("last_name", "Lovelace")
    return StudentCreateRequest(student_id=student_id, email=email or f"{student_id.lower()}@school.edu", **fields)


def _record(semester, year):
    return AcademicRecordCreateRequest(
        semester=semester, year=year, course_code="CS101", course_name="Intro", grade="B", credits=3
    )


class TestFindStudents:
    def test_pages_concatenate_to_full_result(self, db):
        """Consecutive pages cover the whole filtered set with no gaps or repeats"""
        for i in range(7):
            make_student(db, f"S{i:03d}", major="Physics")

        full = find_students(db, StudentQuery(limit=100, sort_by="major"))
        pages = [
            find_students(db, StudentQuery(page=page, limit=3, sort_by="major"))
            for page in (1, 2, 3)
        ]

        assert full.total == 7
        assert pages[0].total_pages == 3
        assert [s.id for p in pages for s in p.items] == [s.id for s in full.items]

    def test_gpa_bounds_exclude_students_without_gpa(self, db):
        make_student(db, "S1", current_gpa=None)
        make_student(db, "S2", current_gpa=1.0)
        make_student(db, "S3", current_gpa=3.0)

        page = find_students(db, StudentQuery(min_gpa=0.0, sort_by="student_id", sort_order="asc"))

        assert [s.student_id for s in page.items] == ["S2", "S3"]
        assert page.total == 2

    def test_search_is_case_insensitive_across_identity_fields(self, db):
        make_student(db, "AB-100", first_name="Grace", last_name="Hopper")
        make_student(db, "CD-200", first_name="Alan", last_name="Turing")

        assert [s.student_id for s in find_students(db, StudentQuery(search="hopper")).items] == ["AB-100"]
        assert [s.student_id for s in find_students(db, StudentQuery(search="cd-2")).items] == ["CD-200"]

    def test_search_treats_wildcards_literally(self, db):
        make_student(db, "S1", first_name="Ann")
        assert find_students(db, StudentQuery(search="%")).total == 0

    def test_unknown_sort_field_is_rejected(self, db):
        with pytest.raises(ValidationFailed) as exc:
            find_students(db, StudentQuery(sort_by="hashed_password"))
        assert "sort_by" in exc.value.errors

    def test_counts_related_rows(self, db, admin):
        student = make_student(db, "S1")
        create_academic_record(
            db,
            student.id,
            _record("Fall", 2023),
            admin.id,
        )

        item = find_students(db, StudentQuery()).items[0]

        assert item.academic_record_count == 1
        assert item.document_count == 0


class TestSoftDelete:
    def test_deleted_student_is_invisible_everywhere(self, db, admin):
        student = make_student(db, "GONE-1")
        soft_delete_student(db, student.id, admin.id)

        with pytest.raises(NotFound):
            get_student(db, student.id)
        assert find_students(db, StudentQuery(search="GONE-1")).total == 0
        assert search_students(db, "GONE-1") == []
        with pytest.raises(NotFound):
            list_academic_records(db, student.id)

        # the row itself is kept
        assert db.get(Student, student.id).is_deleted is True

    def test_deleting_twice_is_not_found(self, db, admin):
        student = make_student(db, "S1")
        soft_delete_student(db, student.id, admin.id)
        with pytest.raises(NotFound):
            soft_delete_student(db, student.id, admin.id)


class TestUniqueness:
    def test_duplicate_student_id_conflicts(self, db, admin):
        create_student(db, _payload("S1"), admin.id)
        with pytest.raises(Conflict):
            create_student(db, _payload("S1", email="other@school.edu"), admin.id)

    def test_duplicate_email_conflicts(self, db, admin):
        create_student(db, _payload("S1", email="same@school.edu"), admin.id)
        with pytest.raises(Conflict):
            create_student(db, _payload("S2", email="same@school.edu"), admin.id)

    def test_soft_deleted_identifiers_can_be_reused(self, db, admin):
        first = create_student(db, _payload("S1"), admin.id)
        soft_delete_student(db, first.id, admin.id)

        second = create_student(db, _payload("S1"), admin.id)

        assert second.id != first.id
        assert second.student_id == "S1"

    def test_update_to_taken_email_conflicts(self, db, admin):
        create_student(db, _payload("S1", email="one@school.edu"), admin.id)
        other = create_student(db, _payload("S2", email="two@school.edu"), admin.id)

        with pytest.raises(Conflict):
            update_student(db, other.id, StudentUpdateRequest(email="one@school.edu"), admin.id)

    def test_update_writes_only_provided_fields(self, db, admin):
        student = create_student(db, _payload("S1", major="History", current_gpa=2.5), admin.id)

        updated = update_student(db, student.id, StudentUpdateRequest(current_gpa=3.1), admin.id)

        assert updated.current_gpa == 3.1
        assert updated.major == "History"


class TestConcurrentDuplicates:
    """A writer that passes the pre-check still hits the live-row unique indexes."""

    @pytest.fixture(autouse=True)
    def skip_precheck(self, monkeypatch):
        monkeypatch.setattr(students_service, "_live_duplicate", lambda *args, **kwargs: False)

    def test_create_race_is_conflict_and_rolled_back(self, db, admin):
        create_student(db, _payload("R1"), admin.id)

        with pytest.raises(Conflict):
            create_student(db, _payload("R1", email="racer@school.edu"), admin.id)

        assert db.query(AuditLog).count() == 1
        create_student(db, _payload("R2"), admin.id)
        assert db.query(Student).count() == 2

    def test_update_race_is_conflict_and_rolled_back(self, db, admin):
        create_student(db, _payload("R1", email="one@school.edu"), admin.id)
        other = create_student(db, _payload("R2", email="two@school.edu"), admin.id)

        with pytest.raises(Conflict):
            update_student(db, other.id, StudentUpdateRequest(email="one@school.edu"), admin.id)

        assert db.query(AuditLog).count() == 2
        assert db.get(Student, other.id).email == "two@school.edu"


class TestAudit:
    def test_writes_record_audit_entries(self, db, admin):
        student = create_student(db, _payload("S1"), admin.id)
        update_student(db, student.id, StudentUpdateRequest(status=StudentStatus.graduated), admin.id)
        soft_delete_student(db, student.id, admin.id)

        actions = [a.action for a in db.query(AuditLog).order_by(AuditLog.id).all()]
        assert actions == ["CREATE", "UPDATE", "DELETE"]

    def test_failed_create_leaves_no_audit_entry(self, db, admin):
        create_student(db, _payload("S1"), admin.id)
        with pytest.raises(Conflict):
            create_student(db, _payload("S1"), admin.id)
        assert db.query(AuditLog).count() == 1


class TestAcademicRecords:
    def test_records_newest_first(self, db, admin):
        student = make_student(db, "S1")
        for semester, year in [("Fall", 2022), ("Spring", 2024), ("Fall", 2023)]:
            create_academic_record(
                db,
                student.id,
                _record(semester, year),
                admin.id,
            )

        assert [r.year for r in list_academic_records(db, student.id)] == [2024, 2023, 2022]
