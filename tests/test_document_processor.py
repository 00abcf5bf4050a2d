from conftest import FakeGenerationClient
from student_records.ai.document_processor import MAX_PROMPT_CHARS, DocumentProcessor, read_document_text
from student_records.services.pdf_parser import is_pdf


def test_text_file_is_truncated_before_prompting(tmp_path):
    path = tmp_path / "transcript.txt"
    path.write_text("A" * (MAX_PROMPT_CHARS + 500) + "TAIL")
    llm = FakeGenerationClient(replies=['{"document_type": "transcript", "confidence": 0.9}'])

    result = DocumentProcessor(llm).process_document(str(path), "S-1")

    assert result == {"document_type": "transcript", "confidence": 0.9}
    assert "A" * MAX_PROMPT_CHARS in llm.prompts[0]
    assert "TAIL" not in llm.prompts[0]
    assert "Student ID in our system: S-1" in llm.prompts[0]


def test_binary_file_gets_placeholder(tmp_path):
    path = tmp_path / "scan.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\x00")

    text = read_document_text(str(path))

    assert text.startswith("[Binary file at ")
    assert "without OCR" in text


def test_missing_file_gets_placeholder(tmp_path):
    assert read_document_text(str(tmp_path / "nope.pdf")).startswith("[Binary file at ")


def test_offline_model_returns_zero_confidence(tmp_path, fake_llm):
    path = tmp_path / "note.txt"
    path.write_text("GPA 3.2")

    result = DocumentProcessor(fake_llm).process_document(str(path), "S-1")

    assert result["confidence"] == 0
    assert result["document_type"] == "unknown"
    assert "note" in result


def test_unparsed_reply_keeps_raw_text(tmp_path):
    path = tmp_path / "note.txt"
    path.write_text("GPA 3.2")
    llm = FakeGenerationClient(replies=["Looks like a transcript."])

    result = DocumentProcessor(llm).process_document(str(path), "S-1")

    assert result["raw_response"] == "Looks like a transcript."
    assert result["warnings"] == ["Could not parse structured data from response"]


def test_pdf_detection_uses_magic_bytes():
    assert is_pdf(b"%PDF-1.7\n...")
    assert not is_pdf(b"PK\x03\x04 docx")
