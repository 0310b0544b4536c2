"""Write the weekly digest (HTML + CSV) to disk - can be run as a cron job on Friday evenings."""
import logging
import os
import sys
from collections import defaultdict
from pathlib import Path

from sqlmodel import Session

import export
import store
from db import engine
from digest import render_digest_html, summarize_week
from roster import get_roster
from week import business_today, week_dates

logger = logging.getLogger(__name__)


def generate_weekly_digest(session: Session, output_dir: str | os.PathLike, today: str | None = None) -> dict:
    """
    Build the digest for the week containing ``today`` from the database.

    Returns dict with the week bounds, written file paths and counts.
    """
    today = today or business_today()
    week = week_dates(today)
    reports = store.list_reports_between(session, week[0].date, week[-1].date)

    reports_by_date = defaultdict(list)
    for report in reports:
        reports_by_date[report.report_date].append(report)

    digest = summarize_week(week, reports_by_date, today, len(get_roster()))

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    html_path = out / f"weekly_digest_{week[0].date}.html"
    csv_path = out / export.export_filename(week[0].date)
    html_path.write_text(render_digest_html(digest), encoding="utf-8")
    csv_path.write_bytes(export.to_csv_bytes(export.week_rows(week, reports_by_date)))

    logger.info(f"Weekly digest for {week[0].date} to {week[-1].date} written to {out}")
    return {
        "week_start": week[0].date,
        "week_end": week[-1].date,
        "html_path": str(html_path),
        "csv_path": str(csv_path),
        "students_reported": len(digest.students),
        "total_reports": len(reports),
        "week_rate": digest.week_rate,
    }


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    output_dir = os.getenv("DIGEST_OUTPUT_DIR", "./digests")

    try:
        with Session(engine) as session:
            result = generate_weekly_digest(session, output_dir)
    except Exception as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"SUCCESS: Digest written to {result['html_path']} and {result['csv_path']}")
    print(f"Week: {result['week_start']} to {result['week_end']}")
    print(f"Submission rate: {result['week_rate']}%")
    sys.exit(0)
