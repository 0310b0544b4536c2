from datetime import datetime, timezone
from types import SimpleNamespace

import cron_job
import store
from digest import render_digest_html, summarize_week
from export import BOM, export_filename, to_csv_bytes, week_rows
from seed import SAMPLE_REPORTS, seed_database
from week import week_dates

WEEK = week_dates("2024-01-17")


def report(name, date, work_done, problems=""):
    return SimpleNamespace(
        student_name=name,
        report_date=date,
        work_done=work_done,
        problems=problems,
        plan_tomorrow="",
        created_at=datetime(2024, 1, 15, 18, 0),
    )


def test_summarize_week():
    reports_by_date = {
        "2024-01-15": [report("张三", "2024-01-15", "[PCR] [数据分析] a", "problem"), report("李四", "2024-01-15", "[PCR] b")],
        "2024-01-16": [report("张三", "2024-01-16", "[细胞培养] c", "  ")],
    }
    digest = summarize_week(WEEK, reports_by_date, today="2024-01-17", roster_size=6)

    assert [s.name for s in digest.students] == ["张三", "李四"]
    zhang = digest.students[0]
    assert zhang.total_days == 2
    assert zhang.problem_days == 1
    assert zhang.tags == ["PCR", "数据分析", "细胞培养"]

    assert digest.tag_frequency[0] == ("PCR", 2)
    assert [d.submitted for d in digest.daily] == [2, 1, 0, 0, 0]
    assert digest.week_total == 3
    assert digest.week_max == 30
    assert digest.week_rate == 10
    assert [r.student_name for r in digest.problems] == ["张三"]


def test_summarize_week_uses_statuses_except_today():
    statuses = {
        "2024-01-15": SimpleNamespace(submitted_count=6, total=6),
        "2024-01-17": SimpleNamespace(submitted_count=1, total=6),
    }
    digest = summarize_week(WEEK, {}, today="2024-01-17", roster_size=6, status_by_date=statuses)
    assert digest.daily[0].submitted == 6
    assert digest.daily[0].is_full
    # Today always counts actual reports
    assert digest.daily[2].submitted == 0


def test_empty_week_rate():
    digest = summarize_week(WEEK, {}, today="2024-01-17", roster_size=0)
    assert digest.week_rate == 0


def test_render_digest_escapes_text():
    reports_by_date = {"2024-01-15": [report("<b>张三</b>", "2024-01-15", "[PCR] x", "a & b")]}
    html = render_digest_html(summarize_week(WEEK, reports_by_date, "2024-01-17", 6))
    assert "&lt;b&gt;张三&lt;/b&gt;" in html
    assert "a &amp; b" in html
    assert "2024-01-15 ~ 2024-01-19" in html


def test_csv_quotes_every_field():
    rows = week_rows(WEEK, {"2024-01-15": [report("张三", "2024-01-15", 'said "hi", then left', "多行\n问题")]})
    data = to_csv_bytes(rows)
    assert data.startswith(BOM.encode("utf-8"))
    text = data.decode("utf-8")[1:]
    assert text.split("\n")[0] == '"日期","姓名","今日工作","遇到问题","明日计划","提交时间"'
    assert '"2024-01-15","张三","said ""hi"", then left","多行\n问题","","2024-01-15T18:00:00+08:00"' in text
    assert not text.endswith("\n")


def test_csv_timestamps_in_utc8():
    stamped = report("张三", "2024-01-15", "[PCR] gel")
    stamped.created_at = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    rows = week_rows(WEEK, {"2024-01-15": [stamped]})
    assert rows[1][-1] == "2024-01-15T18:00:00+08:00"


def test_export_filename():
    assert export_filename("2024-01-15") == "实验室周报_2024-01-15.csv"


def test_cron_job_writes_digest(test_session, tmp_path):
    store.upsert_report(test_session, "张三", "2024-01-15", "[PCR] gel", "smear")
    store.upsert_report(test_session, "李四", "2024-01-16", "[文献阅读] review")
    store.upsert_report(test_session, "王五", "2024-01-22", "[PCR] next week")

    result = cron_job.generate_weekly_digest(test_session, tmp_path, today="2024-01-17")

    assert result["week_start"] == "2024-01-15"
    assert result["week_end"] == "2024-01-19"
    assert result["total_reports"] == 2
    assert result["students_reported"] == 2
    assert "smear" in (tmp_path / "weekly_digest_2024-01-15.html").read_text(encoding="utf-8")
    csv_text = (tmp_path / "实验室周报_2024-01-15.csv").read_bytes().decode("utf-8")
    assert len(csv_text.split("\n")) == 3
    assert "+08:00" in csv_text


def test_seed_database_once(test_session):
    assert seed_database("2024-01-15") == len(SAMPLE_REPORTS)
    assert seed_database("2024-01-15") == 0
    assert len(store.list_reports(test_session, "2024-01-15")) == len(SAMPLE_REPORTS)
