"""Report Store: persistence for daily reports keyed by (student_name, report_date)."""
import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, select

from db import is_postgres
from models import DailyReport, InterestLead
from week import business_now

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    created: bool
    report: DailyReport


def find_report(session: Session, student_name: str, report_date: str) -> DailyReport | None:
    stmt = (
        select(DailyReport)
        .where(DailyReport.student_name == student_name)
        .where(DailyReport.report_date == report_date)
    )
    return session.exec(stmt).first()


def _insert_stmt(session: Session):
    # Both dialects spell ON CONFLICT the same way; pick the matching construct
    dialect_insert = postgresql.insert if is_postgres(session.get_bind()) else sqlite.insert
    return dialect_insert(DailyReport.__table__)


def upsert_report(
    session: Session,
    student_name: str,
    report_date: str,
    work_done: str,
    problems: str = "",
    plan_tomorrow: str = "",
) -> UpsertResult:
    """Insert the day's report, or overwrite it if one already exists.

    The insert is conditional on the unique (student_name, report_date) key, so
    two simultaneous submissions can never both insert: the loser falls through
    to the update and the last write wins.
    """
    now = business_now()
    fields = {
        "work_done": work_done,
        "problems": problems or "",
        "plan_tomorrow": plan_tomorrow or "",
        "created_at": now,
    }

    try:
        stmt = (
            _insert_stmt(session)
            .values(student_name=student_name, report_date=report_date, **fields)
            .on_conflict_do_nothing(index_elements=["student_name", "report_date"])
        )
        result = session.execute(stmt)
        created = bool(result.rowcount)

        if not created:
            reports = DailyReport.__table__
            session.execute(
                update(reports)
                .where(reports.c.student_name == student_name)
                .where(reports.c.report_date == report_date)
                .values(**fields)
            )

        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error upserting report for {student_name} on {report_date}: {str(e)}")
        raise

    report = find_report(session, student_name, report_date)
    logger.info(f"{'Created' if created else 'Updated'} report for {student_name} on {report_date}")
    return UpsertResult(created=created, report=report)


def list_reports(session: Session, report_date: str) -> list[DailyReport]:
    """All reports for a day, newest first."""
    stmt = (
        select(DailyReport)
        .where(DailyReport.report_date == report_date)
        .order_by(DailyReport.created_at.desc(), DailyReport.id.desc())
    )
    return list(session.exec(stmt).all())


def list_submitted_names(session: Session, report_date: str) -> list[str]:
    stmt = select(DailyReport.student_name).where(DailyReport.report_date == report_date)
    return list(session.exec(stmt).all())


def list_reports_between(session: Session, start_date: str, end_date: str) -> list[DailyReport]:
    """Reports with start_date <= report_date <= end_date, by day then name."""
    stmt = (
        select(DailyReport)
        .where(DailyReport.report_date >= start_date)
        .where(DailyReport.report_date <= end_date)
        .order_by(DailyReport.report_date, DailyReport.student_name)
    )
    return list(session.exec(stmt).all())


def save_lead(session: Session, name: str, contact: str, lab_size: str = "") -> InterestLead:
    lead = InterestLead(name=name, contact=contact, lab_size=lab_size or "")
    try:
        session.add(lead)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error saving interest lead: {str(e)}")
        raise
    session.refresh(lead)
    logger.info(f"Saved interest lead {lead.id}")
    return lead
