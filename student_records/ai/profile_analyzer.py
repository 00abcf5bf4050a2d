import logging
from typing import Any

from sqlalchemy.orm import Session

from student_records.ai.client import GenerationError, OllamaClient
from student_records.ai.parsing import Parsed, extract_json
from student_records.ai.prompts import PROFILE_SYSTEM_PROMPT, profile_prompt
from student_records.services.students import get_student, list_academic_records

logger = logging.getLogger(__name__)

FALLBACK_NOTE = "This is a fallback analysis. Start Ollama for AI-powered insights."

# (minimum GPA, risk level, overall performance), checked top-down
GPA_STANDING = [
    (3.5, "low", "Excellent academic standing"),
    (3.0, "low", "Good academic standing"),
    (2.5, "medium", "Satisfactory, room for improvement"),
    (2.0, "medium", "Needs improvement"),
    (0.0, "high", "At risk - immediate attention needed"),
]


def standing_for_gpa(gpa: float | None) -> tuple[str, str]:
    if gpa is None:
        return "unknown", "Unable to perform AI analysis"
    for floor, risk_level, performance in GPA_STANDING:
        if gpa >= floor:
            return risk_level, performance
    return "high", GPA_STANDING[-1][2]


def fallback_analysis(gpa: float | None) -> dict[str, Any]:
    risk_level, performance = standing_for_gpa(gpa)
    return {
        "overall_performance": performance,
        "strengths": ["Data-driven analysis unavailable - Ollama service not reachable"],
        "areas_for_improvement": ["Connect Ollama for detailed AI analysis"],
        "recommendations": ["Ensure Ollama is running at the configured URL"],
        "risk_level": risk_level,
        "gpa_trend": "unknown",
        "note": FALLBACK_NOTE,
    }


class ProfileAnalyzer:
    def __init__(self, client: OllamaClient):
        self.client = client

    def analyze(self, db: Session, student_pk: int) -> dict[str, Any]:
        """Raises NotFound for a missing or soft-deleted student."""
        student = get_student(db, student_pk)
        records = list_academic_records(db, student_pk)
        prompt = profile_prompt(student, records)
        gpa = student.current_gpa
        db.commit()

        try:
            response = self.client.generate(prompt, system=PROFILE_SYSTEM_PROMPT)
        except GenerationError as exc:
            logger.error("Profile analysis failed for student %s: %s", student_pk, exc)
            return fallback_analysis(gpa)

        extracted = extract_json(response)
        if isinstance(extracted, Parsed):
            return extracted.value
        logger.warning("Profile analysis for student %s returned no JSON", student_pk)
        return {
            "raw_analysis": extracted.raw,
            "overall_performance": "Analysis completed",
            "risk_level": "unknown",
        }
