from datetime import datetime

from pydantic import BaseModel


class DocumentResponse(BaseModel):
    id: int
    student_id: int
    document_type: str
    file_name: str
    file_size: int
    mime_type: str
    uploaded_by_id: int | None = None
    uploaded_at: datetime

    model_config = {"from_attributes": True}
