import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import DependencyError, PdfReadError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


def is_pdf(data: bytes) -> bool:
    return data.startswith(PDF_MAGIC)


def extract_text_from_pdf(data: bytes, max_chars: int | None = None) -> str:
    """Page text joined by newlines; empty when the PDF cannot be read.

    With ``max_chars`` set, pages stop being read once that much text has
    been collected.
    """
    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted and not reader.decrypt(""):
            logger.info("Skipping password-protected PDF")
            return ""
    except (PdfReadError, DependencyError, NotImplementedError) as exc:
        logger.warning("Unreadable PDF: %s", exc)
        return ""

    texts: list[str] = []
    collected = 0
    for number, page in enumerate(reader.pages, start=1):
        try:
            text = page.extract_text() or ""
        except (PdfReadError, DependencyError) as exc:
            logger.warning("Could not extract PDF page %d: %s", number, exc)
            continue
        texts.append(text)
        collected += len(text)
        if max_chars is not None and collected >= max_chars:
            break
    return "\n".join(texts).strip()
