"""
Migration: enforce one report per (student_name, report_date).

Early databases had no unique key, so two near-simultaneous submissions for
the same student and day could both insert. This migration:
1. Reports any duplicate (student_name, report_date) pairs
2. Deduplicates them, keeping the latest by created_at (then id)
3. Creates a unique index on (student_name, report_date)

It is a no-op on databases whose table already carries the key.
"""
import logging
from sqlalchemy import inspect, text

logger = logging.getLogger(__name__)

TABLE = "dailyreport"
KEY_COLUMNS = {"student_name", "report_date"}
INDEX_NAME = "uniq_reports_student_date_idx"


def has_unique_key(conn) -> bool:
    """Check whether a unique constraint or index covers the natural key."""
    inspector = inspect(conn)
    for constraint in inspector.get_unique_constraints(TABLE):
        if set(constraint["column_names"]) == KEY_COLUMNS:
            return True
    for index in inspector.get_indexes(TABLE):
        if index.get("unique") and set(index["column_names"]) == KEY_COLUMNS:
            return True
    return False


def find_duplicate_keys(conn) -> list[tuple[str, str, int]]:
    result = conn.execute(text(f"""
        SELECT student_name, report_date, COUNT(*) AS count
        FROM {TABLE}
        GROUP BY student_name, report_date
        HAVING COUNT(*) > 1
        ORDER BY report_date, student_name
    """))
    return [tuple(row) for row in result.fetchall()]


def deduplicate(conn) -> int:
    """Delete every row that has a newer sibling for the same key."""
    result = conn.execute(text(f"""
        DELETE FROM {TABLE}
        WHERE EXISTS (
            SELECT 1 FROM {TABLE} newer
            WHERE newer.student_name = {TABLE}.student_name
              AND newer.report_date = {TABLE}.report_date
              AND (newer.created_at > {TABLE}.created_at
                   OR (newer.created_at = {TABLE}.created_at AND newer.id > {TABLE}.id))
        )
    """))
    return result.rowcount or 0


def migrate(engine):
    """Run migration."""
    with engine.connect() as conn:
        trans = conn.begin()

        try:
            if not inspect(conn).has_table(TABLE):
                logger.info(f"{TABLE} table does not exist, skipping migration")
                trans.rollback()
                return

            if has_unique_key(conn):
                logger.info("Unique (student_name, report_date) key already present, skipping migration")
                trans.rollback()
                return

            duplicates = find_duplicate_keys(conn)
            if duplicates:
                logger.warning(f"Found {len(duplicates)} duplicate (student_name, report_date) pairs:")
                for student_name, report_date, count in duplicates:
                    logger.warning(f"   - {student_name} on {report_date}: {count} rows")
                removed = deduplicate(conn)
                logger.info(f"Removed {removed} older duplicate rows")

            logger.info("Creating unique index on (student_name, report_date)...")
            conn.execute(text(f"""
                CREATE UNIQUE INDEX IF NOT EXISTS {INDEX_NAME}
                ON {TABLE} (student_name, report_date)
            """))

            trans.commit()
            logger.info("Migration 001 completed successfully")
        except Exception as e:
            trans.rollback()
            logger.error(f"Migration 001 failed: {str(e)}")
            raise


if __name__ == "__main__":
    from db import engine
    migrate(engine)
