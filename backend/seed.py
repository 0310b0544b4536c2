import logging

from sqlmodel import Session, select

import store
from db import engine
from models import DailyReport
from roster import STUDENTS
from week import business_today

logger = logging.getLogger(__name__)

SAMPLE_REPORTS = [
    ("[PCR] [数据分析] 跑了GAPDH内参的qPCR，熔解曲线单峰", "", "分析目的基因表达"),
    ("[细胞培养] 复苏HeLa细胞，状态良好", "", "传代并冻存一批"),
    ("[Western Blot] 转膜后封闭，孵一抗过夜", "Marker条带有些拖尾", "孵二抗并显影"),
    ("[文献阅读] 读了两篇关于自噬通路的综述", "", "整理文献笔记"),
]


def seed_database(report_date: str | None = None) -> int:
    """Seed the database with sample reports for one day (default: today).

    Returns the number of reports written; an already-seeded day is skipped.
    """
    report_date = report_date or business_today()
    with Session(engine) as session:
        # Check if data already exists
        existing = session.exec(select(DailyReport).where(DailyReport.report_date == report_date)).first()
        if existing:
            logger.info(f"Database already has reports for {report_date}, skipping seed.")
            return 0

        for name, (work_done, problems, plan) in zip(STUDENTS, SAMPLE_REPORTS):
            store.upsert_report(session, name, report_date, work_done, problems, plan)

        logger.info(f"Seeded database with {len(SAMPLE_REPORTS)} sample reports for {report_date}.")
        return len(SAMPLE_REPORTS)


if __name__ == "__main__":
    from db import create_db_and_tables

    logging.basicConfig(level=logging.INFO)
    create_db_and_tables()
    seed_database()
