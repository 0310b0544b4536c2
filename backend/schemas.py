from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from week import as_business_time


class ReportCreate(BaseModel):
    # Required-ness is checked by the handler so missing fields answer 400, not 422
    student_name: str | None = None
    work_done: str | None = None
    problems: str | None = None
    plan_tomorrow: str | None = None


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    service: str


class StudentsResponse(BaseModel):
    students: list[str]


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_name: str
    report_date: str
    work_done: str
    problems: str = ""
    plan_tomorrow: str = ""
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return as_business_time(value).isoformat()


class ReportsResponse(BaseModel):
    date: str
    reports: list[ReportOut]


class StatusSummary(BaseModel):
    date: str
    total: int
    submitted_count: int
    submitted: list[str]
    not_submitted: list[str]


class StudentStatus(BaseModel):
    submitted: bool
    submittedAt: datetime | None = None

    @field_serializer("submittedAt")
    def serialize_submitted_at(self, value: datetime | None) -> str | None:
        return as_business_time(value).isoformat() if value is not None else None


class LeadCreate(BaseModel):
    name: str = ""
    contact: str = ""
    lab_size: str = ""
    timestamp: str | None = None


class InterestLead(BaseModel):
    """Trial-interest form entry as kept in client-local storage."""

    name: str
    contact: str
    lab_size: str = ""
    timestamp: str = Field(default="")
