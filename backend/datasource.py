"""Client data layer.

Views talk to a ``ReportSource``. ``LiveSource`` calls the reports API over
HTTP; ``DemoSource`` answers with the same shapes from fixed and seeded data
without touching the network. ``select_source`` picks one at startup and the
choice is passed to views explicitly.
"""
import logging
import os
from dataclasses import dataclass

import httpx

import demo
from errors import NetworkError, ValidationError
from schemas import InterestLead, ReportsResponse, StatusSummary, StudentsResponse, StudentStatus
from week import as_business_time, business_timestamp, business_today

logger = logging.getLogger(__name__)

DEMO_HOST_PATTERNS = ("github.io", "pages.dev")


@dataclass
class SubmitResult:
    created: bool
    message: str


class ReportSource:
    """Interface shared by the live and demo sources."""

    is_demo = False

    def list_students(self) -> list[str]:
        raise NotImplementedError

    def submit_report(self, student_name: str, work_done: str, problems: str = "", plan_tomorrow: str = "") -> SubmitResult:
        raise NotImplementedError

    def list_reports(self, date: str) -> ReportsResponse:
        raise NotImplementedError

    def get_status(self, date: str) -> StatusSummary:
        raise NotImplementedError

    def get_student_status(self, student_name: str, date: str) -> StudentStatus:
        raise NotImplementedError

    def submit_lead(self, lead: InterestLead) -> bool:
        """Forward a trial-interest lead; False when there is nowhere to send it."""
        raise NotImplementedError


class LiveSource(ReportSource):
    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.base = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base}{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"无法连接服务器: {e}") from e

        if r.status_code == 400:
            try:
                body = r.json()
            except ValueError:
                body = None
            message = body.get("error") if isinstance(body, dict) else None
            raise ValidationError(message if isinstance(message, str) and message else r.text)
        if r.is_error:
            logger.warning(f"{method} {url} returned {r.status_code}")
            raise NetworkError(f"服务器返回错误 {r.status_code}")
        return r

    def list_students(self) -> list[str]:
        r = self._request("GET", "/api/reports/students")
        return StudentsResponse.model_validate(r.json()).students

    def submit_report(self, student_name, work_done, problems="", plan_tomorrow=""):
        payload = {
            "student_name": student_name,
            "work_done": work_done,
            "problems": problems,
            "plan_tomorrow": plan_tomorrow,
        }
        r = self._request("POST", "/api/reports", json=payload)
        return SubmitResult(created=r.status_code == 201, message=r.json()["message"])

    def list_reports(self, date):
        r = self._request("GET", "/api/reports", params={"date": date})
        return ReportsResponse.model_validate(r.json())

    def get_status(self, date):
        r = self._request("GET", "/api/reports/status", params={"date": date})
        return StatusSummary.model_validate(r.json())

    def get_student_status(self, student_name, date):
        r = self._request("GET", "/api/reports/status", params={"date": date, "student_name": student_name})
        return StudentStatus.model_validate(r.json())

    def submit_lead(self, lead):
        self._request("POST", "/api/leads", json=lead.model_dump())
        return True


class DemoSource(ReportSource):
    """Fabricated data; submissions are only remembered for this session.

    Any name is accepted, since the form's roster may be a local override
    the demo roster knows nothing about.
    """

    is_demo = True

    def __init__(self, today: str | None = None, students: list[str] | None = None):
        self.today = today or business_today()
        self.students = list(students or demo.DEMO_STUDENTS)
        self._submitted: dict[str, dict] = {}

    def list_students(self):
        return list(self.students)

    def submit_report(self, student_name, work_done, problems="", plan_tomorrow=""):
        student_name = (student_name or "").strip()
        work_done = (work_done or "").strip()
        if not student_name or not work_done:
            raise ValidationError("student_name 和 work_done 为必填项")

        fixed = {r["student_name"]: r["id"] for r in demo.demo_today_reports(self.today)}
        previous = self._submitted.get(student_name)
        created = previous is None and student_name not in fixed
        if previous is not None:
            report_id = previous["id"]
        else:
            report_id = fixed.get(student_name, len(demo.DEMO_REPORTS) + len(self._submitted) + 1)

        self._submitted[student_name] = {
            "id": report_id,
            "student_name": student_name,
            "report_date": self.today,
            "work_done": work_done,
            "problems": problems or "",
            "plan_tomorrow": plan_tomorrow or "",
            "created_at": business_timestamp(),
        }
        return SubmitResult(created=created, message="日报提交成功" if created else "日报已更新")

    def list_reports(self, date):
        if date != self.today:
            return ReportsResponse.model_validate({"date": date, "reports": demo.demo_day_reports(date)})

        # Session submissions replace the fixed report of the same student
        reports = [r for r in demo.demo_today_reports(date) if r["student_name"] not in self._submitted]
        reports += self._submitted.values()
        reports.sort(key=lambda r: as_business_time(r["created_at"]), reverse=True)
        return ReportsResponse.model_validate({"date": date, "reports": reports})

    def get_status(self, date):
        if date != self.today:
            return StatusSummary.model_validate(demo.demo_week_status(date))
        names = [r.student_name for r in self.list_reports(date).reports]
        return StatusSummary.model_validate(demo.status_summary(date, self.students, names))

    def get_student_status(self, student_name, date):
        for report in self.list_reports(date).reports:
            if report.student_name == student_name:
                return StudentStatus(submitted=True, submittedAt=report.created_at)
        return StudentStatus(submitted=False)

    def submit_lead(self, lead):
        return False


def is_demo_host(hostname: str | None) -> bool:
    return bool(hostname) and any(pattern in hostname for pattern in DEMO_HOST_PATTERNS)


def select_source(
    hostname: str | None = None,
    demo_flag: bool | None = None,
    base_url: str | None = None,
) -> ReportSource:
    """Choose the data source once for the session.

    Demo mode is on when the hostname is a static-hosting domain or the flag
    (LAB_DAILY_DEMO=true) is set; otherwise the live API at base_url
    (LAB_DAILY_API_URL) is used.
    """
    hostname = hostname if hostname is not None else os.getenv("LAB_DAILY_HOSTNAME", "")
    if demo_flag is None:
        demo_flag = os.getenv("LAB_DAILY_DEMO", "").lower() == "true"

    if demo_flag or is_demo_host(hostname):
        logger.info("Using demo data source")
        return DemoSource()

    base_url = base_url or os.getenv("LAB_DAILY_API_URL", "http://localhost:8787")
    logger.info(f"Using live data source at {base_url}")
    return LiveSource(base_url)
