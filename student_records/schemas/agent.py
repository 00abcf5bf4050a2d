from typing import Any, Literal

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    student_id: int


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1)
    context: dict[str, Any] | None = None


class RecommendRequest(BaseModel):
    student_id: int
    type: Literal["courses", "career", "scholarship", "all"] = "all"


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    conversation_history: list[ChatMessage] = []


class ChatResponse(BaseModel):
    message: str
    role: str = "assistant"
    error: bool = False


class InsightStatistics(BaseModel):
    total_students: int
    average_gpa: float | None = None
    at_risk_count: int
    recent_interactions: int


class InsightsResponse(BaseModel):
    statistics: InsightStatistics
    insights: list[Any] = []
    recommendations: list[Any] = []


class AgentStatusResponse(BaseModel):
    available: bool
    model: str
    base_url: str
