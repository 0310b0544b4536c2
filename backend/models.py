from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, UniqueConstraint

from week import business_now


class DailyReport(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("student_name", "report_date", name="uniq_reports_student_date"),)

    id: int | None = Field(default=None, primary_key=True)
    student_name: str = Field(index=True)
    report_date: str = Field(index=True)  # YYYY-MM-DD, UTC+8 business day
    work_done: str
    problems: str = Field(default="")  # Empty means no issue reported
    plan_tomorrow: str = Field(default="")
    # Aware UTC+8 on write; SQLite hands it back as naive UTC+8 wall clock
    created_at: datetime = Field(default_factory=business_now, sa_type=DateTime(timezone=True))  # Refreshed on re-submission


class InterestLead(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str
    contact: str
    lab_size: str = Field(default="")
    submitted_at: datetime = Field(default_factory=business_now, sa_type=DateTime(timezone=True))
