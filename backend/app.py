import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session

import store
from db import create_db_and_tables, engine, get_session
from errors import ValidationError
from roster import get_roster, is_on_roster, partition_roster
from schemas import (
    ErrorResponse,
    HealthResponse,
    LeadCreate,
    MessageResponse,
    ReportCreate,
    ReportOut,
    ReportsResponse,
    StatusSummary,
    StudentsResponse,
    StudentStatus,
)
from week import business_today, parse_date

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "lab-daily-api"

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173,*"

BAD_REQUEST = {400: {"model": ErrorResponse}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    create_db_and_tables()

    # Databases created before the unique key existed need deduplicating
    try:
        from migrations.migrate_001_report_unique_key import migrate as migrate_001

        migrate_001(engine)
    except Exception as e:
        # Don't raise - allow app to start, but log the error clearly
        logger.error(f"Migration 001 failed: {str(e)}")
        import traceback
        logger.error(f"Migration 001 traceback: {traceback.format_exc()}")

    logger.info("Database initialized")
    yield


app = FastAPI(title="Lab Daily Report API", version="1.0.0", lifespan=lifespan)

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "请求格式错误") if errors else "请求格式错误"
    logger.info(f"Malformed {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


def resolve_date(date: str | None) -> str:
    """Validate a ?date= value, defaulting to the server's UTC+8 today."""
    if not date:
        return business_today()
    try:
        parse_date(date)
    except ValueError as e:
        raise ValidationError("date 格式应为 YYYY-MM-DD") from e
    return date


@app.get("/api/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", service=SERVICE_NAME)


@app.get("/api/reports/students", response_model=StudentsResponse)
def list_students():
    """Get the roster submissions are validated against."""
    return StudentsResponse(students=get_roster())


@app.post("/api/reports", response_model=MessageResponse, responses={201: {"model": MessageResponse}, **BAD_REQUEST})
def submit_report(request: ReportCreate, session: Session = Depends(get_session)):
    """Submit today's report; a second submission the same day overwrites the first."""
    student_name = (request.student_name or "").strip()
    work_done = (request.work_done or "").strip()

    if not student_name or not work_done:
        raise ValidationError("student_name 和 work_done 为必填项")
    if not is_on_roster(student_name):
        raise ValidationError("学生不在名单中")

    today = business_today()
    logger.info(f"Report submission from {student_name} for {today}")

    result = store.upsert_report(
        session,
        student_name,
        today,
        work_done=work_done,
        problems=request.problems or "",
        plan_tomorrow=request.plan_tomorrow or "",
    )

    if result.created:
        return JSONResponse(status_code=201, content={"message": "日报提交成功"})
    return MessageResponse(message="日报已更新")


@app.get("/api/reports", response_model=ReportsResponse, responses=BAD_REQUEST)
def get_reports(
    date: str = Query(None, description="Report date (YYYY-MM-DD), defaults to today"),
    session: Session = Depends(get_session),
):
    """All reports for a day, newest first (PI dashboard)."""
    date = resolve_date(date)
    logger.info(f"Reports request for {date}")

    reports = store.list_reports(session, date)
    return ReportsResponse(date=date, reports=[ReportOut.model_validate(r) for r in reports])


@app.get("/api/reports/status", response_model=StudentStatus | StatusSummary, responses=BAD_REQUEST)
def get_status(
    date: str = Query(None, description="Report date (YYYY-MM-DD), defaults to today"),
    student_name: str = Query(None, description="Only this student's status"),
    session: Session = Depends(get_session),
):
    """Submission status.

    With student_name: that student's status for the day (student form).
    Without: the submitted/not-submitted split of the roster (PI dashboard).
    """
    date = resolve_date(date)

    if student_name:
        report = store.find_report(session, student_name, date)
        return StudentStatus(
            submitted=report is not None,
            submittedAt=report.created_at if report else None,
        )

    roster = get_roster()
    submitted, not_submitted = partition_roster(roster, store.list_submitted_names(session, date))
    logger.info(f"Status for {date}: {len(submitted)}/{len(roster)} submitted")
    return StatusSummary(
        date=date,
        total=len(roster),
        submitted_count=len(submitted),
        submitted=submitted,
        not_submitted=not_submitted,
    )


@app.post("/api/leads", response_model=MessageResponse, status_code=201, responses=BAD_REQUEST)
def submit_lead(request: LeadCreate, session: Session = Depends(get_session)):
    """Record a trial-interest form submission from the landing page."""
    name = request.name.strip()
    contact = request.contact.strip()
    if not name or not contact:
        raise ValidationError("name 和 contact 为必填项")

    store.save_lead(session, name=name, contact=contact, lab_size=request.lab_size.strip())
    return MessageResponse(message="已收到试用意向")


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Lab Daily Report API", "docs": "/docs"}
