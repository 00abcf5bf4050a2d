import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from student_records.ai.client import GenerationError, OllamaClient
from student_records.ai.parsing import Parsed, extract_json
from student_records.ai.prompts import QUERY_SYSTEM_PROMPT, query_prompt
from student_records.models.student import Student, StudentStatus
from student_records.schemas.student import StudentQuery, StudentSummary
from student_records.services.interactions import create_ai_interaction
from student_records.services.students import count_students, distinct_majors, find_students, live_students

logger = logging.getLogger(__name__)

AI_RESULT_LIMIT = 50
FALLBACK_RESULT_LIMIT = 20
FALLBACK_NOTE = "AI query processing unavailable. Showing text search results."

# Keys the model is told about, mapped onto StudentQuery fields
_CRITERIA_FIELDS = {
    "major": "major",
    "status": "status",
    "minGpa": "min_gpa",
    "maxGpa": "max_gpa",
    "firstName": "first_name",
    "lastName": "last_name",
}


def coerce_criteria(raw: Any) -> dict[str, Any]:
    """Turn model-produced search criteria into StudentQuery keyword arguments.

    Unknown keys are ignored; values that cannot be coerced are dropped rather
    than failing the whole query.
    """
    if not isinstance(raw, dict):
        return {}
    criteria: dict[str, Any] = {}
    for key, field in _CRITERIA_FIELDS.items():
        value = raw.get(key, raw.get(field))
        if value is None or value == "":
            continue
        if field in ("min_gpa", "max_gpa"):
            try:
                value = float(value)
            except (TypeError, ValueError):
                logger.warning("Dropping non-numeric %s=%r from AI criteria", key, value)
                continue
            if not 0.0 <= value <= 4.0:
                logger.warning("Dropping out-of-range %s=%r from AI criteria", key, value)
                continue
        elif field == "status":
            value = str(value).strip().lower()
            if value not in StudentStatus.__members__:
                logger.warning("Dropping unknown status %r from AI criteria", value)
                continue
            value = StudentStatus(value)
        else:
            value = str(value)
        criteria[field] = value
    return criteria


class QueryAssistant:
    def __init__(self, client: OllamaClient):
        self.client = client

    def process_query(self, db: Session, query: str, user_id: int | None) -> dict[str, Any]:
        total_students = count_students(db)
        majors = distinct_majors(db)
        prompt = query_prompt(query, total_students, majors)
        # end the read transaction before the (slow) model call
        db.commit()

        try:
            response = self.client.generate(prompt, system=QUERY_SYSTEM_PROMPT)
        except GenerationError as exc:
            logger.error("Query assistant failed: %s", exc)
            return self._text_search(db, query)

        extracted = extract_json(response)
        if isinstance(extracted, Parsed):
            result = dict(extracted.value)
        else:
            result = {
                "interpretation": query,
                "summary": extracted.raw,
                "search_criteria": {},
                "suggestions": [],
            }

        results = self.execute_search(db, result.get("search_criteria"))
        result["results"] = results
        result["resultCount"] = len(results)

        create_ai_interaction(
            db,
            user_id,
            query,
            result,
            "query_assistant",
            context={"totalStudents": total_students},
        )
        return result

    def execute_search(self, db: Session, raw_criteria: Any) -> list[dict[str, Any]]:
        criteria = coerce_criteria(raw_criteria)
        page = find_students(
            db,
            StudentQuery(page=1, limit=AI_RESULT_LIMIT, sort_by="created_at", sort_order="desc", **criteria),
        )
        return [StudentSummary.model_validate(item).model_dump(mode="json") for item in page.items]

    def _text_search(self, db: Session, query: str) -> dict[str, Any]:
        pattern = query.strip()
        students = (
            db.query(Student)
            .filter(
                live_students(),
                or_(
                    Student.first_name.icontains(pattern, autoescape=True),
                    Student.last_name.icontains(pattern, autoescape=True),
                    Student.major.icontains(pattern, autoescape=True),
                    Student.email.icontains(pattern, autoescape=True),
                ),
            )
            .order_by(Student.id.asc())
            .limit(FALLBACK_RESULT_LIMIT)
            .all()
        )
        results = [StudentSummary.model_validate(s).model_dump(mode="json") for s in students]
        return {
            "interpretation": f'Text search for: "{query}"',
            "summary": f'Found {len(results)} students matching "{query}"',
            "search_criteria": {},
            "results": results,
            "resultCount": len(results),
            "note": FALLBACK_NOTE,
            "suggestions": ["Try more specific queries when AI is available"],
        }
