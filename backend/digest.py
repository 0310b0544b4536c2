"""Weekly digest: aggregation of a week's reports for the PI."""
from collections import Counter
from dataclasses import dataclass, field
from html import escape

from tags import extract_tags
from week import WeekDay, business_now


@dataclass
class StudentWeek:
    name: str
    reports: list = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    problem_days: int = 0
    total_days: int = 0


@dataclass
class DayStat:
    date: str
    label: str
    submitted: int
    total: int

    @property
    def is_full(self) -> bool:
        return self.total > 0 and self.submitted == self.total


@dataclass
class WeeklyDigest:
    week: list[WeekDay]
    students: list[StudentWeek]
    tag_frequency: list[tuple[str, int]]
    daily: list[DayStat]
    problems: list
    week_total: int = 0
    week_max: int = 0

    @property
    def week_rate(self) -> int:
        """Whole-number completion percentage for the week."""
        return round(self.week_total / self.week_max * 100) if self.week_max else 0


def has_problem(report) -> bool:
    return bool(report.problems and report.problems.strip())


def summarize_week(
    week: list[WeekDay],
    reports_by_date: dict,
    today: str,
    roster_size: int,
    status_by_date: dict | None = None,
) -> WeeklyDigest:
    """
    Aggregate a week of reports.

    Daily counts come from ``status_by_date`` when given for a day other than
    today (demo statuses), otherwise from the number of reports that day
    against ``roster_size``.
    """
    status_by_date = status_by_date or {}
    all_reports = [r for day in week for r in reports_by_date.get(day.date, [])]

    by_student: dict[str, StudentWeek] = {}
    frequency: Counter = Counter()
    for report in all_reports:
        entry = by_student.setdefault(report.student_name, StudentWeek(report.student_name))
        entry.reports.append(report)
        entry.total_days += 1
        if has_problem(report):
            entry.problem_days += 1
        for tag in extract_tags(report.work_done):
            frequency[tag] += 1
            if tag not in entry.tags:
                entry.tags.append(tag)

    # Stable sort keeps first-seen order among equal counts
    students = sorted(by_student.values(), key=lambda s: s.total_days, reverse=True)
    tag_frequency = sorted(frequency.items(), key=lambda item: item[1], reverse=True)

    daily = []
    for day in week:
        status = status_by_date.get(day.date) if day.date != today else None
        if status is not None:
            daily.append(DayStat(day.date, day.label, status.submitted_count, status.total))
        else:
            daily.append(DayStat(day.date, day.label, len(reports_by_date.get(day.date, [])), roster_size))

    return WeeklyDigest(
        week=week,
        students=students,
        tag_frequency=tag_frequency,
        daily=daily,
        problems=[r for r in all_reports if has_problem(r)],
        week_total=sum(d.submitted for d in daily),
        week_max=sum(d.total for d in daily),
    )


def render_digest_html(digest: WeeklyDigest) -> str:
    """Generate the HTML weekly digest page."""
    week_start = digest.week[0].date if digest.week else ""
    week_end = digest.week[-1].date if digest.week else ""

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: Arial, sans-serif; background-color: #f5f5f5; padding: 20px; }}
            .container {{ max-width: 800px; margin: 0 auto; background-color: white; padding: 30px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }}
            h1 {{ color: #333; border-bottom: 3px solid #2563eb; padding-bottom: 10px; }}
            h2 {{ color: #666; margin-top: 20px; }}
            table {{ width: 100%; border-collapse: collapse; margin-top: 20px; }}
            th, td {{ padding: 12px; text-align: left; border-bottom: 1px solid #ddd; }}
            th {{ background-color: #2563eb; color: #fff; font-weight: bold; }}
            .problem {{ color: #c2410c; }}
            .footer {{ margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd; color: #666; font-size: 12px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>实验室周报</h1>
            <h2>{week_start} ~ {week_end}</h2>
            <p>本周提交率 <strong>{digest.week_rate}%</strong>（{digest.week_total}/{digest.week_max} 人次）</p>

            <table>
                <thead>
                    <tr><th>日期</th><th>提交</th></tr>
                </thead>
                <tbody>
    """

    for day in digest.daily:
        html += f"""
                    <tr><td>{day.label} {day.date}</td><td>{day.submitted}/{day.total}{' 全勤' if day.is_full else ''}</td></tr>
        """

    html += """
                </tbody>
            </table>

            <table>
                <thead>
                    <tr><th>学生</th><th>提交天数</th><th>有问题天数</th><th>实验类型</th></tr>
                </thead>
                <tbody>
    """

    if digest.students:
        for s in digest.students:
            html += f"""
                    <tr>
                        <td>{escape(s.name)}</td>
                        <td><strong>{s.total_days}</strong></td>
                        <td>{s.problem_days}</td>
                        <td>{escape('、'.join(s.tags))}</td>
                    </tr>
            """
    else:
        html += """
                    <tr>
                        <td colspan="4" style="text-align: center; color: #999;">本周还没有日报</td>
                    </tr>
        """

    html += """
                </tbody>
            </table>
    """

    if digest.problems:
        html += "<h2>本周遇到的问题</h2><ul>"
        for r in digest.problems:
            html += f'<li class="problem"><strong>{escape(r.student_name)}</strong>（{r.report_date}）：{escape(r.problems)}</li>'
        html += "</ul>"

    html += f"""
            <div class="footer">
                <p>Generated automatically on {business_now().strftime("%Y-%m-%d %H:%M")} (UTC+8)</p>
            </div>
        </div>
    </body>
    </html>
    """

    return html
