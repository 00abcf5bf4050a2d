import logging
from typing import Any

from sqlalchemy.orm import Session

from student_records.ai.client import GenerationError, OllamaClient
from student_records.ai.parsing import Parsed, extract_json
from student_records.ai.prompts import RECOMMENDATION_SYSTEM_PROMPT, recommendation_prompt
from student_records.services.students import get_student, list_academic_records

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
FALLBACK_NOTE = (
    "AI recommendations unavailable. Showing rule-based suggestions. "
    "Start Ollama for AI-powered recommendations."
)

TUTORING = {
    "type": "activity",
    "title": "Academic Tutoring",
    "description": "Enroll in peer tutoring program to improve academic performance",
    "rationale": "Current GPA suggests additional academic support would be beneficial",
    "priority": "high",
    "prerequisites": [],
    "expected_outcome": "Improved understanding and higher grades",
}

SCHOLARSHIP = {
    "type": "scholarship",
    "title": "Dean's List Scholarship",
    "description": "Apply for academic excellence scholarship",
    "rationale": "High GPA makes you eligible for merit-based scholarships",
    "priority": "high",
    "prerequisites": ["Maintain current GPA"],
    "expected_outcome": "Financial support for continued education",
}

CAREER_COUNSELING = {
    "type": "career",
    "title": "Career Counseling Session",
    "description": "Schedule a meeting with the career services office",
    "rationale": "Regular career guidance helps align academic choices with career goals",
    "priority": "medium",
    "prerequisites": [],
    "expected_outcome": "Clearer career direction and networking opportunities",
}


def _copy(recommendation: dict) -> dict:
    return {**recommendation, "prerequisites": list(recommendation["prerequisites"])}


def fallback_recommendations(gpa: float | None) -> dict[str, Any]:
    recommendations = []
    if gpa is not None and gpa < 2.5:
        recommendations.append(_copy(TUTORING))
    if gpa is not None and gpa >= 3.5:
        recommendations.append(_copy(SCHOLARSHIP))
    recommendations.append(_copy(CAREER_COUNSELING))
    return {"recommendations": recommendations, "note": FALLBACK_NOTE}


class RecommendationEngine:
    def __init__(self, client: OllamaClient):
        self.client = client

    def generate_recommendations(self, db: Session, student_pk: int, kind: str = "all") -> dict[str, Any]:
        student = get_student(db, student_pk)
        records = list_academic_records(db, student_pk)[:HISTORY_LIMIT]
        prompt = recommendation_prompt(student, records, kind)
        gpa = student.current_gpa
        db.commit()

        try:
            response = self.client.generate(prompt, system=RECOMMENDATION_SYSTEM_PROMPT)
        except GenerationError as exc:
            logger.error("Recommendation generation failed for student %s: %s", student_pk, exc)
            return fallback_recommendations(gpa)

        extracted = extract_json(response)
        if isinstance(extracted, Parsed):
            return extracted.value
        return {"recommendations": [], "raw_response": extracted.raw}
