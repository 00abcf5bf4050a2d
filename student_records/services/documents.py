from sqlalchemy.orm import Session

from student_records.models.document import Document
from student_records.services.storage import StoredFile
from student_records.services.students import get_student


def add_document(
    db: Session,
    student_pk: int,
    stored: StoredFile,
    document_type: str | None,
    user_id: int | None,
) -> Document:
    get_student(db, student_pk)
    doc = Document(
        student_id=student_pk,
        document_type=document_type or "general",
        file_name=stored.original_name,
        file_path=stored.path,
        file_size=stored.size,
        mime_type=stored.mime_type,
        uploaded_by_id=user_id,
    )
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc
