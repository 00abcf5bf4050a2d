from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from student_records.ai.agent import AgentService
from student_records.api.dependencies import get_agent_service
from student_records.core.database import get_db
from student_records.core.errors import ValidationFailed
from student_records.core.rate_limit import AGENT_LIMIT, AUTH_LIMIT, limiter
from student_records.models.user import User, UserRole
from student_records.schemas.academic_record import AcademicRecordCreateRequest, AcademicRecordResponse
from student_records.schemas.agent import (
    AgentStatusResponse,
    AnalyzeRequest,
    ChatRequest,
    ChatResponse,
    InsightsResponse,
    QueryRequest,
    RecommendRequest,
)
from student_records.schemas.analytics import AtRiskStudent, Cohort, DashboardResponse, TrendsResponse
from student_records.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserOut
from student_records.schemas.document import DocumentResponse
from student_records.schemas.student import (
    BulkImportResponse,
    DeleteResponse,
    StudentCreateRequest,
    StudentDetailResponse,
    StudentPage,
    StudentQuery,
    StudentResponse,
    StudentSummary,
    StudentUpdateRequest,
)
from student_records.services import analytics
from student_records.services.auth import get_current_user, login_user, refresh_tokens, register_user, require_roles
from student_records.services.documents import add_document
from student_records.services.importer import decode_csv, import_students_csv
from student_records.services.storage import discard_upload, read_upload, save_upload
from student_records.services.students import (
    create_academic_record,
    create_student,
    find_students,
    get_student,
    list_academic_records,
    search_students,
    soft_delete_student,
    update_student,
)

router = APIRouter(prefix="/api")

_staff = require_roles(UserRole.admin, UserRole.faculty, UserRole.staff)
_faculty = require_roles(UserRole.admin, UserRole.faculty)
_admin = require_roles(UserRole.admin)


# ── Auth ──────────────────────────────────────────────────────────────────────

@router.post("/auth/register", response_model=TokenResponse, status_code=201)
@limiter.limit(AUTH_LIMIT)
def register_endpoint(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    return register_user(db, payload)


@router.post("/auth/login", response_model=TokenResponse)
@limiter.limit(AUTH_LIMIT)
def login_endpoint(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    return login_user(db, payload)


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh_endpoint(payload: RefreshRequest, db: Session = Depends(get_db)):
    return refresh_tokens(db, payload.refresh_token)


@router.post("/auth/logout")
def logout_endpoint(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards them.
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserOut)
def me_endpoint(current_user: User = Depends(get_current_user)):
    return current_user


# ── Students ──────────────────────────────────────────────────────────────────
# NOTE: literal segments (/students/search, /students/bulk-import) must be
# registered before /students/{student_pk}.

@router.get("/students", response_model=StudentPage)
def list_students_endpoint(
    query: Annotated[StudentQuery, Query()],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return find_students(db, query)


@router.get("/students/search", response_model=list[StudentSummary])
def search_students_endpoint(
    q: str = Query("", description="Matches name, email, student ID or major"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not q.strip():
        raise ValidationFailed("Search query is required", {"q": "must not be empty"})
    return search_students(db, q.strip())


@router.post("/students/bulk-import", response_model=BulkImportResponse)
def bulk_import_endpoint(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    return import_students_csv(db, decode_csv(read_upload(file)), current_user.id)


@router.post("/students", response_model=StudentResponse, status_code=201)
def create_student_endpoint(
    payload: StudentCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    return create_student(db, payload, current_user.id)


@router.get("/students/{student_pk}", response_model=StudentDetailResponse)
def get_student_endpoint(
    student_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_student(db, student_pk, include_records=True)


@router.put("/students/{student_pk}", response_model=StudentResponse)
def update_student_endpoint(
    student_pk: int,
    payload: StudentUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    return update_student(db, student_pk, payload, current_user.id)


@router.delete("/students/{student_pk}", response_model=DeleteResponse)
def delete_student_endpoint(
    student_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    soft_delete_student(db, student_pk, current_user.id)
    return DeleteResponse(message="Student deleted successfully")


# ── Academic records ──────────────────────────────────────────────────────────

@router.get("/students/{student_pk}/academic", response_model=list[AcademicRecordResponse])
def list_academic_records_endpoint(
    student_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_academic_records(db, student_pk)


@router.post("/students/{student_pk}/academic", response_model=AcademicRecordResponse, status_code=201)
def create_academic_record_endpoint(
    student_pk: int,
    payload: AcademicRecordCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(_faculty),
):
    return create_academic_record(db, student_pk, payload, current_user.id)


# ── Documents ─────────────────────────────────────────────────────────────────

@router.post("/students/{student_pk}/documents", response_model=DocumentResponse, status_code=201)
def upload_document_endpoint(
    student_pk: int,
    file: UploadFile = File(...),
    document_type: str | None = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    get_student(db, student_pk)
    stored = save_upload(file)
    return add_document(db, student_pk, stored, document_type, current_user.id)


# ── Analytics ─────────────────────────────────────────────────────────────────

@router.get("/analytics/dashboard", response_model=DashboardResponse)
def dashboard_endpoint(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return analytics.get_dashboard(db)


@router.get("/analytics/trends", response_model=TrendsResponse)
def trends_endpoint(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return analytics.get_trends(db)


@router.get("/analytics/cohort", response_model=list[Cohort])
def cohort_endpoint(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return analytics.get_cohorts(db)


@router.get("/analytics/at-risk", response_model=list[AtRiskStudent])
def at_risk_endpoint(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return analytics.get_at_risk_students(db)


# ── AI agent ──────────────────────────────────────────────────────────────────
# Generation failures never surface here; every endpoint returns a degraded
# payload with a "note" instead.

@router.post("/agent/analyze")
@limiter.limit(AGENT_LIMIT)
def analyze_endpoint(
    request: Request,
    payload: AnalyzeRequest,
    db: Session = Depends(get_db),
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    return agent.analyze(db, payload.student_id, current_user.id)


@router.post("/agent/query")
@limiter.limit(AGENT_LIMIT)
def query_endpoint(
    request: Request,
    payload: QueryRequest,
    db: Session = Depends(get_db),
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    return agent.query(db, payload.query, current_user.id)


@router.post("/agent/recommend")
@limiter.limit(AGENT_LIMIT)
def recommend_endpoint(
    request: Request,
    payload: RecommendRequest,
    db: Session = Depends(get_db),
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    return agent.recommend(db, payload.student_id, payload.type, current_user.id)


@router.post("/agent/process-document")
@limiter.limit(AGENT_LIMIT)
def process_document_endpoint(
    request: Request,
    file: UploadFile = File(...),
    student_id: str = Form(...),
    db: Session = Depends(get_db),
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    stored = save_upload(file)
    try:
        return agent.process_document(db, stored.path, student_id, current_user.id)
    finally:
        discard_upload(stored)


@router.post("/agent/chat", response_model=ChatResponse)
@limiter.limit(AGENT_LIMIT)
def chat_endpoint(
    request: Request,
    payload: ChatRequest,
    db: Session = Depends(get_db),
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    return agent.chat(db, payload.message, payload.conversation_history, current_user.id)


@router.get("/agent/insights", response_model=InsightsResponse)
@limiter.limit(AGENT_LIMIT)
def insights_endpoint(
    request: Request,
    db: Session = Depends(get_db),
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    return agent.get_insights(db, current_user.id)


@router.get("/agent/status", response_model=AgentStatusResponse)
def agent_status_endpoint(
    agent: AgentService = Depends(get_agent_service),
    current_user: User = Depends(get_current_user),
):
    return agent.status()
