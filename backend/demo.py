"""Demo data: realistic lab reports served when no API is reachable.

Today's reports are a fixed set. Other weekdays are generated from a
generator seeded by the date string, so a given date always produces the same
submitted/not-submitted split and the same reports.
"""
import random
from datetime import datetime, timedelta

from roster import DEFAULT_STUDENTS, partition_roster
from week import BUSINESS_TZ, business_now, business_today, is_weekend

DEMO_STUDENTS = list(DEFAULT_STUDENTS)

# (student, hours ago, work_done, problems, plan_tomorrow)
DEMO_REPORTS = [
    (
        "陈思远",
        3,
        "[Western Blot] [数据分析] 完成了p-STAT3的WB，三次重复均一致，条带清晰",
        "二抗孵育时间可能偏长，背景稍高，下次减少到45min试试",
        "跑ELISA验证细胞因子水平",
    ),
    (
        "刘雨桐",
        4,
        "[细胞培养] [PCR] 传代HEK293T第18代，同时做了IL-6引物的RT-qPCR",
        "",
        "细胞转染实验，用lipofectamine 3000",
    ),
    (
        "张明阳",
        2,
        "[文献阅读] [写论文] 读了3篇关于肿瘤微环境中巨噬细胞极化的综述，整理了Discussion部分的逻辑框架",
        "Discussion第二段关于M1/M2转化的论证逻辑不太顺，需要老师指导一下",
        "继续修改Discussion，争取写完初稿",
    ),
    (
        "王子涵",
        5,
        "[动物实验] [样本处理] 小鼠给药第7天，取血清和肝脏组织，已-80冻存",
        "",
        "组织切片H&E染色",
    ),
]

# Pool the seeded generator draws past-day reports from
_TEMPLATES = [
    ("[细胞培养] 换液并观察细胞状态，汇合度约80%", "", "准备传代"),
    ("[PCR] 跑了目的基因的qPCR，内参稳定", "", "分析ΔΔCt结果"),
    ("[Western Blot] 转膜完成，封闭过夜", "", "孵一抗"),
    ("[数据分析] 整理上周ELISA数据并作图", "有两个孔CV偏大，考虑重复", "补做重复实验"),
    ("[文献阅读] 精读两篇相关方法学文章", "", "写读书笔记"),
    ("[写论文] 修改Methods部分", "", "继续写Results"),
    ("[试剂配制] 配制RIPA裂解液和电泳缓冲液", "", "提蛋白"),
    ("[仪器调试] 校准移液器，调试酶标仪", "酶标仪450nm读数偶尔漂移", "联系工程师"),
    ("[组会/汇报] 准备组会PPT并汇报进展", "", "根据反馈调整实验设计"),
]


def date_seed(value: str) -> int:
    """Polynomial string hash (base 31, 32-bit) of a date string."""
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h


def _rng(value: str) -> random.Random:
    return random.Random(date_seed(value))


def _iso(moment: datetime) -> str:
    return moment.replace(tzinfo=BUSINESS_TZ).isoformat()


def demo_today_reports(date: str | None = None, now: datetime | None = None) -> list[dict]:
    """Today's fixed reports, newest first, shaped like GET /api/reports items.

    Timestamps are hours before ``now``; when ``date`` is not the real today
    they count back from 20:00 on that date.
    """
    now = now or business_now()
    if date and date != now.date().isoformat():
        now = datetime.fromisoformat(date).replace(hour=20)
    reports = [
        {
            "id": i + 1,
            "student_name": name,
            "report_date": now.date().isoformat(),
            "work_done": work_done,
            "problems": problems,
            "plan_tomorrow": plan,
            "created_at": _iso(now - timedelta(hours=hours)),
        }
        for i, (name, hours, work_done, problems, plan) in enumerate(DEMO_REPORTS)
    ]
    return sorted(reports, key=lambda r: r["created_at"], reverse=True)


def status_summary(date: str, roster: list[str], submitted_names: list[str]) -> dict:
    submitted, not_submitted = partition_roster(roster, submitted_names)
    return {
        "date": date,
        "total": len(roster),
        "submitted_count": len(submitted),
        "submitted": submitted,
        "not_submitted": not_submitted,
    }


def demo_today_status(date: str | None = None) -> dict:
    date = date or business_today()
    return status_summary(date, DEMO_STUDENTS, [r[0] for r in DEMO_REPORTS])


def demo_week_status(date: str) -> dict:
    """Seeded status for a past or future day; weekends expect nobody."""
    if is_weekend(date):
        return status_summary(date, DEMO_STUDENTS, [])

    rng = _rng(date)
    shuffled = list(DEMO_STUDENTS)
    rng.shuffle(shuffled)
    count = min(4 + rng.randrange(3), len(shuffled))
    return status_summary(date, DEMO_STUDENTS, shuffled[:count])


def demo_day_reports(date: str) -> list[dict]:
    """Seeded reports for a non-today date, one per submitted student."""
    status = demo_week_status(date)
    rng = _rng(date + "/reports")
    base = datetime.fromisoformat(date).replace(hour=17)
    reports = []
    for i, name in enumerate(status["submitted"]):
        work_done, problems, plan = rng.choice(_TEMPLATES)
        reports.append({
            "id": i + 1,
            "student_name": name,
            "report_date": date,
            "work_done": work_done,
            "problems": problems,
            "plan_tomorrow": plan,
            "created_at": _iso(base + timedelta(minutes=rng.randrange(240))),
        })
    return sorted(reports, key=lambda r: r["created_at"], reverse=True)
