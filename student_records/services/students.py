import json
import logging
import math
from contextlib import contextmanager

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from student_records.core.errors import Conflict, NotFound, ValidationFailed
from student_records.models.academic_record import AcademicRecord
from student_records.models.audit_log import AuditLog
from student_records.models.document import Document
from student_records.models.student import Student
from student_records.schemas.academic_record import AcademicRecordCreateRequest
from student_records.schemas.student import (
    StudentCreateRequest,
    StudentListItem,
    StudentPage,
    StudentQuery,
    StudentUpdateRequest,
)

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": Student.created_at,
    "updated_at": Student.updated_at,
    "student_id": Student.student_id,
    "first_name": Student.first_name,
    "last_name": Student.last_name,
    "email": Student.email,
    "major": Student.major,
    "current_gpa": Student.current_gpa,
    "status": Student.status,
    "enrollment_date": Student.enrollment_date,
}

SEARCH_LIMIT = 20


def live_students():
    """Base predicate for every read path: soft-deleted rows are invisible."""
    return Student.is_deleted.is_(False)


def _contains(column, value: str):
    return column.icontains(value, autoescape=True)


def student_filters(query: StudentQuery) -> list:
    clauses = [live_students()]
    if query.search:
        clauses.append(
            or_(
                _contains(Student.first_name, query.search),
                _contains(Student.last_name, query.search),
                _contains(Student.email, query.search),
                _contains(Student.student_id, query.search),
            )
        )
    if query.major:
        clauses.append(_contains(Student.major, query.major))
    if query.status is not None:
        clauses.append(Student.status == query.status)
    if query.first_name:
        clauses.append(_contains(Student.first_name, query.first_name))
    if query.last_name:
        clauses.append(_contains(Student.last_name, query.last_name))
    # NULL compares false, so students without a GPA never satisfy a bound
    if query.min_gpa is not None:
        clauses.append(Student.current_gpa >= query.min_gpa)
    if query.max_gpa is not None:
        clauses.append(Student.current_gpa <= query.max_gpa)
    return clauses


def _order_by(query: StudentQuery) -> list:
    column = SORTABLE_FIELDS.get(query.sort_by)
    if column is None:
        raise ValidationFailed(
            "Invalid sort field.",
            {"sort_by": f"Must be one of: {sorted(SORTABLE_FIELDS)}"},
        )
    primary = column.asc() if query.sort_order == "asc" else column.desc()
    # Primary key keeps ties in the same order across repeated calls
    return [primary, Student.id.asc()]


def find_students(db: Session, query: StudentQuery) -> StudentPage:
    clauses = student_filters(query)
    order_by = _order_by(query)

    record_count = (
        select(func.count(AcademicRecord.id))
        .where(AcademicRecord.student_id == Student.id)
        .correlate(Student)
        .scalar_subquery()
    )
    document_count = (
        select(func.count(Document.id))
        .where(Document.student_id == Student.id)
        .correlate(Student)
        .scalar_subquery()
    )
    rows = (
        db.query(Student, record_count, document_count)
        .filter(*clauses)
        .order_by(*order_by)
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
        .all()
    )
    total = db.query(func.count(Student.id)).filter(*clauses).scalar() or 0

    items = []
    for student, records, documents in rows:
        item = StudentListItem.model_validate(student)
        item.academic_record_count = records or 0
        item.document_count = documents or 0
        items.append(item)
    return StudentPage(
        items=items,
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=math.ceil(total / query.limit),
    )


def count_students(db: Session, query: StudentQuery | None = None) -> int:
    clauses = student_filters(query) if query else [live_students()]
    return db.query(func.count(Student.id)).filter(*clauses).scalar() or 0


def distinct_majors(db: Session) -> list[str]:
    rows = (
        db.query(Student.major)
        .filter(live_students(), Student.major.isnot(None))
        .distinct()
        .order_by(Student.major)
        .all()
    )
    return [major for (major,) in rows]


def get_student(db: Session, student_pk: int, include_records: bool = False) -> Student:
    q = db.query(Student).filter(Student.id == student_pk, live_students())
    if include_records:
        q = q.options(
            selectinload(Student.academic_records),
            selectinload(Student.documents),
            selectinload(Student.created_by),
        )
    student = q.first()
    if student is None:
        raise NotFound("Student not found.")
    return student


def search_students(db: Session, text: str) -> list[Student]:
    return (
        db.query(Student)
        .filter(
            live_students(),
            or_(
                _contains(Student.first_name, text),
                _contains(Student.last_name, text),
                _contains(Student.email, text),
                _contains(Student.student_id, text),
                _contains(Student.major, text),
            ),
        )
        .order_by(Student.updated_at.desc(), Student.id.asc())
        .limit(SEARCH_LIMIT)
        .all()
    )


def create_audit_log_entry(
    db: Session,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int,
    changes=None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        changes=json.dumps(jsonable_encoder(changes)) if changes is not None else None,
    )
    db.add(entry)
    return entry


@contextmanager
def _unique_write(db: Session, message: str):
    # A concurrent duplicate can slip past the pre-check; the partial unique
    # indexes reject it at flush/commit time.
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Uniqueness violation: %s", exc.orig)
        raise Conflict(message) from exc


def _live_duplicate(db: Session, column, value, exclude_pk: int | None = None) -> bool:
    q = db.query(Student.id).filter(live_students(), column == value)
    if exclude_pk is not None:
        q = q.filter(Student.id != exclude_pk)
    return q.first() is not None


def create_student(db: Session, payload: StudentCreateRequest, user_id: int | None) -> Student:
    if _live_duplicate(db, Student.student_id, payload.student_id) or _live_duplicate(
        db, Student.email, payload.email
    ):
        raise Conflict("Student with this ID or email already exists.")

    data = payload.model_dump()
    student = Student(**data, created_by_id=user_id)
    with _unique_write(db, "Student with this ID or email already exists."):
        db.add(student)
        db.flush()
        create_audit_log_entry(db, user_id, "CREATE", "student", student.id, data)
    db.refresh(student)
    logger.info("Created student %s (%s)", student.id, student.student_id)
    return student


def update_student(
    db: Session, student_pk: int, payload: StudentUpdateRequest, user_id: int | None
) -> Student:
    student = get_student(db, student_pk)
    changes = payload.model_dump(exclude_none=True)

    if "email" in changes and changes["email"] != student.email:
        if _live_duplicate(db, Student.email, changes["email"], exclude_pk=student.id):
            raise Conflict("Email already in use.")
    if "student_id" in changes and changes["student_id"] != student.student_id:
        if _live_duplicate(db, Student.student_id, changes["student_id"], exclude_pk=student.id):
            raise Conflict("Student ID already in use.")

    before = {field: getattr(student, field) for field in changes}
    with _unique_write(db, "Student ID or email already in use."):
        for field, value in changes.items():
            setattr(student, field, value)
        create_audit_log_entry(
            db, user_id, "UPDATE", "student", student.id, {"before": before, "after": changes}
        )
    db.refresh(student)
    logger.info("Updated student %s fields=%s", student.id, sorted(changes))
    return student


def soft_delete_student(db: Session, student_pk: int, user_id: int | None) -> None:
    student = get_student(db, student_pk)
    student.is_deleted = True
    create_audit_log_entry(db, user_id, "DELETE", "student", student.id)
    db.commit()
    logger.info("Soft-deleted student %s", student.id)


def list_academic_records(db: Session, student_pk: int) -> list[AcademicRecord]:
    get_student(db, student_pk)
    return (
        db.query(AcademicRecord)
        .filter(AcademicRecord.student_id == student_pk)
        .order_by(AcademicRecord.year.desc(), AcademicRecord.semester.desc(), AcademicRecord.id.asc())
        .all()
    )


def create_academic_record(
    db: Session, student_pk: int, payload: AcademicRecordCreateRequest, user_id: int | None
) -> AcademicRecord:
    get_student(db, student_pk)
    data = payload.model_dump()
    record = AcademicRecord(student_id=student_pk, **data)
    db.add(record)
    db.flush()
    create_audit_log_entry(db, user_id, "CREATE", "academic_record", record.id, data)
    db.commit()
    db.refresh(record)
    return record
