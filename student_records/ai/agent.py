import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from student_records.ai.client import ChatTurn, GenerationError, OllamaClient
from student_records.ai.document_processor import DocumentProcessor
from student_records.ai.parsing import Parsed, extract_json
from student_records.ai.profile_analyzer import ProfileAnalyzer
from student_records.ai.prompts import CHAT_SYSTEM_PROMPT, INSIGHTS_SYSTEM_PROMPT, insights_prompt
from student_records.ai.query_assistant import QueryAssistant
from student_records.ai.recommendations import RecommendationEngine
from student_records.models.ai_interaction import AIInteraction
from student_records.models.student import Student, StudentStatus
from student_records.schemas.agent import (
    AgentStatusResponse,
    ChatMessage,
    ChatResponse,
    InsightsResponse,
    InsightStatistics,
)
from student_records.services.analytics import AT_RISK_GPA
from student_records.services.interactions import create_ai_interaction
from student_records.services.students import live_students

logger = logging.getLogger(__name__)

CHAT_UNAVAILABLE = (
    "I apologize, but I'm currently unable to process your request. The AI service may be "
    "unavailable. Please try again later or contact support."
)


def collect_statistics(db: Session) -> InsightStatistics:
    """All four figures come from one statement, so they share a snapshot."""
    week_ago = datetime.utcnow() - timedelta(days=7)
    total = select(func.count(Student.id)).where(live_students()).scalar_subquery()
    average = (
        select(func.avg(Student.current_gpa))
        .where(live_students(), Student.current_gpa.isnot(None))
        .scalar_subquery()
    )
    at_risk = (
        select(func.count(Student.id))
        .where(
            live_students(),
            Student.status == StudentStatus.active,
            Student.current_gpa < AT_RISK_GPA,
        )
        .scalar_subquery()
    )
    recent = select(func.count(AIInteraction.id)).where(AIInteraction.created_at >= week_ago).scalar_subquery()
    row = db.execute(select(total, average, at_risk, recent)).one()
    return InsightStatistics(
        total_students=row[0] or 0,
        average_gpa=float(row[1]) if row[1] is not None else None,
        at_risk_count=row[2] or 0,
        recent_interactions=row[3] or 0,
    )


def _format_gpa(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "N/A"


def fallback_insights(stats: InsightStatistics) -> InsightsResponse:
    return InsightsResponse(
        statistics=stats,
        insights=[
            f"System currently manages {stats.total_students} student profiles",
            f"{stats.at_risk_count} students are flagged as at-risk (GPA below 2.0)",
            f"Average GPA across all students: {_format_gpa(stats.average_gpa)}",
        ],
        recommendations=[
            "Review at-risk students for early intervention",
            "Schedule academic counseling for students below 2.0 GPA",
        ],
    )


class AgentService:
    def __init__(self, client: OllamaClient):
        self.client = client
        self.profile_analyzer = ProfileAnalyzer(client)
        self.query_assistant = QueryAssistant(client)
        self.recommendation_engine = RecommendationEngine(client)
        self.document_processor = DocumentProcessor(client)

    def analyze(self, db: Session, student_pk: int, user_id: int | None) -> dict[str, Any]:
        result = self.profile_analyzer.analyze(db, student_pk)
        create_ai_interaction(db, user_id, f"Analyze student: {student_pk}", result, "profile_analyzer")
        return result

    def query(self, db: Session, text: str, user_id: int | None) -> dict[str, Any]:
        return self.query_assistant.process_query(db, text, user_id)

    def recommend(self, db: Session, student_pk: int, kind: str, user_id: int | None) -> dict[str, Any]:
        result = self.recommendation_engine.generate_recommendations(db, student_pk, kind)
        create_ai_interaction(
            db,
            user_id,
            f"Recommendations for student: {student_pk} (type: {kind})",
            result,
            "recommendation_engine",
        )
        return result

    def process_document(self, db: Session, file_path: str, student_id: str, user_id: int | None) -> dict[str, Any]:
        result = self.document_processor.process_document(file_path, student_id)
        create_ai_interaction(
            db, user_id, f"Process document for student: {student_id}", result, "document_processor"
        )
        return result

    def chat(
        self,
        db: Session,
        message: str,
        history: list[ChatMessage],
        user_id: int | None,
    ) -> ChatResponse:
        messages: list[ChatTurn] = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        messages.extend({"role": m.role, "content": m.content} for m in history)
        messages.append({"role": "user", "content": message})
        try:
            reply = self.client.chat(messages)
        except GenerationError as exc:
            logger.error("Chat failed: %s", exc)
            return ChatResponse(message=CHAT_UNAVAILABLE, error=True)

        create_ai_interaction(
            db, user_id, message, reply, "chat", context={"conversationLength": len(history)}
        )
        return ChatResponse(message=reply)

    def get_insights(self, db: Session, user_id: int | None) -> InsightsResponse:
        stats = collect_statistics(db)
        db.commit()
        prompt = insights_prompt(
            stats.total_students,
            _format_gpa(stats.average_gpa),
            stats.at_risk_count,
            stats.recent_interactions,
        )
        try:
            response = self.client.generate(prompt, system=INSIGHTS_SYSTEM_PROMPT)
        except GenerationError as exc:
            logger.warning("Insights generation failed for user %s: %s", user_id, exc)
            return fallback_insights(stats)

        extracted = extract_json(response)
        if not isinstance(extracted, Parsed):
            return fallback_insights(stats)
        insights = extracted.value.get("insights")
        recommendations = extracted.value.get("recommendations")
        if not isinstance(insights, list) or not isinstance(recommendations, list):
            return fallback_insights(stats)
        return InsightsResponse(statistics=stats, insights=insights, recommendations=recommendations)

    def status(self) -> AgentStatusResponse:
        return AgentStatusResponse(
            available=self.client.is_available(),
            model=self.client.config.model,
            base_url=self.client.config.base_url,
        )
