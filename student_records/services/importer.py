import csv
import logging
from io import StringIO

from pydantic import ValidationError
from sqlalchemy.orm import Session

from student_records.core.errors import AppError, ValidationFailed
from student_records.schemas.student import BulkImportError, BulkImportResponse, StudentCreateRequest
from student_records.services.students import create_student

logger = logging.getLogger(__name__)


def decode_csv(data: bytes) -> str:
    # utf-8-sig strips the byte-order mark spreadsheet exports put before the first header
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationFailed("CSV file must be UTF-8 encoded", {"file": str(exc)}) from exc


def parse_student_csv(content: str) -> list[dict]:
    """Rows keyed by snake_case or camelCase headers."""
    reader = csv.DictReader(StringIO(content))
    return [dict(row) for row in reader]


def _row_to_payload(row: dict) -> dict:
    gpa = row.get("gpa") or row.get("current_gpa") or row.get("currentGpa")
    payload = {
        "student_id": row.get("student_id") or row.get("studentId"),
        "first_name": row.get("first_name") or row.get("firstName"),
        "last_name": row.get("last_name") or row.get("lastName"),
        "email": row.get("email"),
        "phone": row.get("phone") or None,
        "major": row.get("major") or None,
        "current_gpa": float(gpa) if gpa else None,
        "status": (row.get("status") or "active").strip().lower(),
    }
    return {k: v.strip() if isinstance(v, str) else v for k, v in payload.items()}


def import_students_csv(db: Session, content: str, user_id: int | None) -> BulkImportResponse:
    rows = parse_student_csv(content)
    imported = 0
    errors: list[BulkImportError] = []
    for row in rows:
        try:
            payload = StudentCreateRequest(**_row_to_payload(row))
            create_student(db, payload, user_id)
            imported += 1
        except (ValidationError, ValueError, AppError) as exc:
            errors.append(BulkImportError(row=row, error=str(exc)))
    logger.info("Bulk import: %d/%d rows imported", imported, len(rows))
    return BulkImportResponse(imported=imported, total=len(rows), errors=errors)
