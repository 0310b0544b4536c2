"""Tests for migration 001 on a database created before the unique key."""
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError

from migrations.migrate_001_report_unique_key import find_duplicate_keys, has_unique_key, migrate


@pytest.fixture
def legacy_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as conn:
        conn.execute(text("""
            CREATE TABLE dailyreport (
                id INTEGER PRIMARY KEY,
                student_name VARCHAR NOT NULL,
                report_date VARCHAR NOT NULL,
                work_done VARCHAR NOT NULL,
                problems VARCHAR NOT NULL DEFAULT '',
                plan_tomorrow VARCHAR NOT NULL DEFAULT '',
                created_at DATETIME NOT NULL
            )
        """))
        rows = [
            (1, "张三", "2024-01-15", "first", "2024-01-15 17:00:00.000000"),
            (2, "张三", "2024-01-15", "second", "2024-01-15 17:00:00.500000"),
            (3, "李四", "2024-01-15", "only", "2024-01-15 18:00:00.000000"),
            # Same timestamp: the higher id wins
            (4, "王五", "2024-01-15", "a", "2024-01-15 19:00:00.000000"),
            (5, "王五", "2024-01-15", "b", "2024-01-15 19:00:00.000000"),
        ]
        for id_, name, day, work, created in rows:
            conn.execute(
                text("INSERT INTO dailyreport (id, student_name, report_date, work_done, created_at) "
                     "VALUES (:id, :name, :day, :work, :created)"),
                {"id": id_, "name": name, "day": day, "work": work, "created": created},
            )
    yield engine
    engine.dispose()


def test_migration_deduplicates_and_adds_key(legacy_engine):
    with legacy_engine.connect() as conn:
        assert not has_unique_key(conn)
        assert find_duplicate_keys(conn) == [("张三", "2024-01-15", 2), ("王五", "2024-01-15", 2)]

    migrate(legacy_engine)

    with legacy_engine.connect() as conn:
        assert has_unique_key(conn)
        rows = conn.execute(text("SELECT student_name, work_done FROM dailyreport ORDER BY student_name")).fetchall()
        assert sorted(tuple(r) for r in rows) == sorted([("张三", "second"), ("李四", "only"), ("王五", "b")])

    with pytest.raises(IntegrityError):
        with legacy_engine.begin() as conn:
            conn.execute(text(
                "INSERT INTO dailyreport (student_name, report_date, work_done, created_at) "
                "VALUES ('李四', '2024-01-15', 'dup', '2024-01-15 20:00:00')"
            ))


def test_migration_is_idempotent(legacy_engine):
    migrate(legacy_engine)
    migrate(legacy_engine)

    with legacy_engine.connect() as conn:
        count = conn.execute(text("SELECT COUNT(*) FROM dailyreport")).scalar()
    assert count == 3


def test_migration_skips_missing_table(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    migrate(engine)
    engine.dispose()
