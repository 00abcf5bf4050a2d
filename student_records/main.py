import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from student_records.ai.client import OllamaClient
from student_records.api.routes import router as api_router
from student_records.core.config import settings
from student_records.core.database import engine
from student_records.core.errors import AppError
from student_records.core.logging import configure_logging
from student_records.core.rate_limit import limiter, rate_limit_exceeded_handler
from student_records.models.base import Base
import student_records.models  # noqa: F401

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Student Records API", version="0.1.0")

app.state.limiter = limiter
app.state.generation_client = OllamaClient(settings.generation_config())

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(AppError)
def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {
        ".".join(str(part) for part in err["loc"] if part != "body"): err["msg"]
        for err in exc.errors()
    }
    return JSONResponse(
        status_code=400,
        content={"kind": "ValidationFailed", "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"kind": "InternalError", "message": "Internal server error"})


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    logger.info("Student Records API started (%s)", settings.environment)


@app.on_event("shutdown")
def on_shutdown():
    app.state.generation_client.close()


@app.get("/health")
def health_check():
    return {"status": "ok", "environment": settings.environment}
