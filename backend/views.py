"""Presentation views.

Each view is a small stateful view-model. Views only talk to the
``ReportSource`` and ``ClientState`` they are given; they never choose the
data source or touch raw storage keys themselves.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import export
from datasource import ReportSource, SubmitResult
from digest import WeeklyDigest, has_problem, summarize_week
from errors import NetworkError, ValidationError
from local_store import ClientState, Draft
from schemas import InterestLead, ReportOut, StatusSummary, StudentStatus
from tags import ACTIVITY_TAGS, build_work_done
from week import business_now, business_timestamp, business_today, format_time, week_dates

logger = logging.getLogger(__name__)

LOAD_FAILED = "加载失败，请刷新重试"
REMIND_STUB = "提醒功能将在微信集成后启用"


class StudentReportView:
    """The daily report form."""

    tags = ACTIVITY_TAGS

    def __init__(self, source: ReportSource, state: ClientState, today: str | None = None):
        self.source = source
        self.state = state
        self.today = today or business_today()
        self.student_name = state.last_student if state.last_student in state.get_students() else ""
        self.draft = Draft()
        self.status: StudentStatus | None = None
        if self.student_name:
            self.select_student(self.student_name)

    def students(self) -> list[str]:
        return self.state.get_students()

    def select_student(self, name: str) -> Draft:
        """Switch student: remember the choice, restore their draft, load status."""
        self.student_name = name
        self.state.last_student = name
        self.draft = self.state.load_draft(name, self.today) or Draft()
        try:
            self.status = self.source.get_student_status(name, self.today)
        except NetworkError:
            self.status = None
        return self.draft

    def _save_draft(self) -> None:
        if self.student_name:
            self.state.save_draft(self.student_name, self.today, self.draft)

    def toggle_tag(self, tag: str) -> list[str]:
        tags = list(self.draft.selected_tags)
        if tag in tags:
            tags.remove(tag)
        else:
            tags.append(tag)
        self.draft = self.draft.model_copy(update={"selected_tags": tags})
        self._save_draft()
        return tags

    def update_fields(self, **fields) -> Draft:
        """Update supplement/problems/plan_tomorrow; the draft is saved each time."""
        unknown = set(fields) - {"supplement", "problems", "plan_tomorrow"}
        if unknown:
            raise TypeError(f"Unknown draft fields: {sorted(unknown)}")
        self.draft = self.draft.model_copy(update=fields)
        self._save_draft()
        return self.draft

    def work_done(self) -> str:
        return build_work_done(self.draft.selected_tags, self.draft.supplement)

    def submit(self) -> SubmitResult:
        if not self.student_name:
            raise ValidationError("请先选择姓名")
        work_done = self.work_done()
        if not work_done:
            raise ValidationError("请至少选择一个标签或填写工作内容")

        result = self.source.submit_report(
            self.student_name,
            work_done,
            problems=self.draft.problems.strip(),
            plan_tomorrow=self.draft.plan_tomorrow.strip(),
        )
        self.state.clear_draft(self.student_name, self.today)
        self.status = StudentStatus(submitted=True, submittedAt=business_now())
        logger.info(f"Submitted report for {self.student_name}: {result.message}")
        return result


@dataclass
class DashboardData:
    submitted_count: int = 0
    total: int = 0
    percent: int = 0
    reports: list[ReportOut] = field(default_factory=list)
    attention: list[ReportOut] = field(default_factory=list)
    not_submitted: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class DayCell:
    date: str
    label: str
    status: StatusSummary | None
    is_today: bool
    is_future: bool

    @property
    def caption(self) -> str:
        if self.is_future:
            return ""
        if self.status is None:
            return "—"
        missing = self.status.total - self.status.submitted_count
        return "全勤" if missing == 0 and self.status.total > 0 else f"{missing}人缺"


@dataclass
class StudentRow:
    name: str
    submitted: bool
    time: str | None = None


@dataclass
class FillingStatus:
    days: list[DayCell]
    students: list[StudentRow]
    counts: dict[str, int]


FILTERS = ("all", "not-submitted", "needs-attention")


class PIDashboardView:
    """The PI dashboard: today, filling status and weekly summary tabs."""

    def __init__(self, source: ReportSource, today: str | None = None):
        self.source = source
        self.today = today or business_today()
        self.week = week_dates(self.today)
        self.reports: list[ReportOut] = []
        self.status: StatusSummary | None = None
        self.error: str | None = None
        self._week_reports: dict[str, list[ReportOut]] | None = None

    def _fetch_many(self, fn, dates: list[str]) -> dict:
        """Fetch independent dates concurrently; failed dates map to None."""
        def safe(date):
            try:
                return fn(date)
            except NetworkError as e:
                logger.warning(f"Fetch for {date} failed: {e}")
                return None

        with ThreadPoolExecutor(max_workers=max(len(dates), 1)) as pool:
            return dict(zip(dates, pool.map(safe, dates)))

    def load_today(self) -> None:
        with ThreadPoolExecutor(max_workers=2) as pool:
            reports_future = pool.submit(self.source.list_reports, self.today)
            status_future = pool.submit(self.source.get_status, self.today)
            try:
                self.reports = reports_future.result().reports
                self.status = status_future.result()
                self.error = None
            except NetworkError as e:
                logger.error(f"Failed to load today's reports: {e}")
                self.error = LOAD_FAILED

    def dashboard(self) -> DashboardData:
        if self.error:
            return DashboardData(error=self.error)

        reports = sorted(self.reports, key=lambda r: r.created_at, reverse=True)
        data = DashboardData(
            reports=reports,
            attention=[r for r in self.reports if has_problem(r)],
        )
        if self.status:
            data.submitted_count = self.status.submitted_count
            data.total = self.status.total
            data.percent = round(self.status.submitted_count / self.status.total * 100) if self.status.total else 0
            data.not_submitted = list(self.status.not_submitted)
        return data

    def filling_status(self, active_filter: str = "all") -> FillingStatus:
        if active_filter not in FILTERS:
            raise ValueError(f"Unknown filter: {active_filter}")

        others = [d.date for d in self.week if d.date != self.today and d.date <= self.today]
        fetched = self._fetch_many(self.source.get_status, others)
        days = [
            DayCell(
                date=d.date,
                label=d.label,
                status=self.status if d.date == self.today else fetched.get(d.date),
                is_today=d.date == self.today,
                is_future=d.date > self.today,
            )
            for d in self.week
        ]

        rows = []
        if self.status:
            times = {r.student_name: format_time(r.created_at) for r in self.reports}
            rows += [StudentRow(name, True, times.get(name)) for name in self.status.submitted]
            rows += [StudentRow(name, False) for name in self.status.not_submitted]

        attention = {r.student_name for r in self.reports if has_problem(r)}
        counts = {
            "all": len(rows),
            "not-submitted": sum(1 for row in rows if not row.submitted),
            "needs-attention": len(attention),
        }
        if active_filter == "not-submitted":
            rows = [row for row in rows if not row.submitted]
        elif active_filter == "needs-attention":
            rows = [row for row in rows if row.name in attention]
        return FillingStatus(days=days, students=rows, counts=counts)

    def remind_all(self) -> str:
        # Notification delivery is not wired up; the action only acknowledges
        return REMIND_STUB

    def week_reports(self) -> dict[str, list[ReportOut]]:
        if self._week_reports is None:
            fetched = self._fetch_many(self.source.list_reports, [d.date for d in self.week])
            self._week_reports = {date: (resp.reports if resp else []) for date, resp in fetched.items()}
        return self._week_reports

    def weekly_summary(self) -> WeeklyDigest:
        reports_by_date = self.week_reports()
        statuses = None
        if self.source.is_demo:
            statuses = {d.date: self.source.get_status(d.date) for d in self.week if d.date != self.today}
        try:
            roster_size = len(self.source.list_students())
        except NetworkError:
            roster_size = self.status.total if self.status else 0
        return summarize_week(self.week, reports_by_date, self.today, roster_size, statuses)

    def export_csv(self) -> tuple[str, bytes]:
        rows = export.week_rows(self.week, self.week_reports())
        monday = self.week[0].date if self.week else self.today
        return export.export_filename(monday), export.to_csv_bytes(rows)


@dataclass
class InterestResult:
    saved_locally: bool
    api_sent: bool


class LandingView:
    """Landing page trial-interest form."""

    def __init__(self, state: ClientState, source: ReportSource | None = None):
        self.state = state
        self.source = source

    def submit_interest(self, name: str, contact: str, lab_size: str = "") -> InterestResult:
        if not name.strip() or not contact.strip():
            raise ValidationError("请填写姓名和联系方式")

        lead = InterestLead(
            name=name.strip(),
            contact=contact.strip(),
            lab_size=lab_size.strip(),
            timestamp=business_timestamp(),
        )
        # Local copy first so nothing is lost if the API is down
        self.state.append_lead(lead)

        api_sent = False
        if self.source is not None:
            try:
                api_sent = self.source.submit_lead(lead)
            except NetworkError as e:
                logger.warning(f"Lead kept locally only: {e}")
        return InterestResult(saved_locally=True, api_sent=api_sent)


class AdminLeadsView:
    """Locally stored trial-interest leads, newest first."""

    def __init__(self, state: ClientState):
        self.state = state

    def leads(self) -> list[InterestLead]:
        return list(reversed(self.state.list_leads()))
