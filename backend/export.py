"""CSV export of a week's reports, readable by Excel (UTF-8 with BOM)."""
import csv
import io

from week import WeekDay, as_business_time

CSV_HEADER = ["日期", "姓名", "今日工作", "遇到问题", "明日计划", "提交时间"]

BOM = "\ufeff"


def export_filename(monday: str) -> str:
    return f"实验室周报_{monday}.csv"


def week_rows(week: list[WeekDay], reports_by_date: dict) -> list[list[str]]:
    """Header plus one row per report, in week order.

    ``reports_by_date`` maps a date to report objects with attribute access
    (ReportOut or DailyReport).
    """
    rows = [list(CSV_HEADER)]
    for day in week:
        for r in reports_by_date.get(day.date, []):
            created_at = as_business_time(r.created_at).isoformat() if r.created_at else ""
            rows.append([
                day.date,
                r.student_name,
                r.work_done,
                r.problems or "",
                r.plan_tomorrow or "",
                created_at,
            ])
    return rows


def to_csv_bytes(rows: list[list[str]]) -> bytes:
    """Every field quoted, embedded quotes doubled, rows joined with \\n."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    # No trailing newline after the last row
    return (BOM + buf.getvalue().rstrip("\n")).encode("utf-8")
