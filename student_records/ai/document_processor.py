import logging
from pathlib import Path
from typing import Any

from student_records.ai.client import GenerationError, OllamaClient
from student_records.ai.parsing import Parsed, extract_json
from student_records.ai.prompts import DOCUMENT_SYSTEM_PROMPT, document_prompt
from student_records.services.pdf_parser import extract_text_from_pdf, is_pdf

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 4000


def read_document_text(file_path: str) -> str:
    """Best-effort text content of an uploaded file.

    PDFs go through pypdf; anything else must decode as UTF-8. Unreadable or
    binary files yield a placeholder so the model still gets a prompt.
    """
    placeholder = f"[Binary file at {file_path} - text extraction not available without OCR]"
    try:
        data = Path(file_path).read_bytes()
    except OSError as exc:
        logger.warning("Could not read %s: %s", file_path, exc)
        return placeholder
    if is_pdf(data):
        return extract_text_from_pdf(data, max_chars=MAX_PROMPT_CHARS) or placeholder
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return placeholder


class DocumentProcessor:
    def __init__(self, client: OllamaClient):
        self.client = client

    def process_document(self, file_path: str, student_id: str) -> dict[str, Any]:
        content = read_document_text(file_path)[:MAX_PROMPT_CHARS]
        prompt = document_prompt(content, student_id)
        try:
            response = self.client.generate(prompt, system=DOCUMENT_SYSTEM_PROMPT)
        except GenerationError as exc:
            logger.error("Document processing failed for %s: %s", file_path, exc)
            return {
                "extracted_fields": {},
                "confidence": 0,
                "warnings": ["Document processing failed - Ollama service may be unavailable"],
                "document_type": "unknown",
                "note": "AI document processing unavailable. Start Ollama for this feature.",
            }

        extracted = extract_json(response)
        if isinstance(extracted, Parsed):
            return extracted.value
        return {
            "extracted_fields": {},
            "confidence": 0,
            "warnings": ["Could not parse structured data from response"],
            "document_type": "unknown",
            "raw_response": extracted.raw,
        }
