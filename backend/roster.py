"""Student rosters.

The server roster is compiled in and immutable at runtime; it is what the API
validates submissions against. The client roster is what the report form
offers, defaults to its own list and can be overridden locally. The two are
never reconciled.
"""
import logging

logger = logging.getLogger(__name__)

STUDENTS = [
    "张三",
    "李四",
    "王五",
    "赵六",
    "孙七",
    "周八",
]

DEFAULT_STUDENTS = ["陈思远", "刘雨桐", "张明阳", "王子涵", "李晓萱", "赵天宇"]


def get_roster() -> list[str]:
    return list(STUDENTS)


def is_on_roster(name: str, roster: list[str] | None = None) -> bool:
    return name in (roster if roster is not None else STUDENTS)


def partition_roster(roster: list[str], submitted_names: list[str]) -> tuple[list[str], list[str]]:
    """Split the roster into (submitted, not_submitted), both in roster order.

    Names that submitted but are no longer on the roster are dropped so the
    two lists always cover the roster exactly once.
    """
    seen = set(submitted_names)
    stray = seen.difference(roster)
    if stray:
        logger.warning(f"Ignoring submissions from names not on roster: {sorted(stray)}")
    submitted = [name for name in roster if name in seen]
    not_submitted = [name for name in roster if name not in seen]
    return submitted, not_submitted


def normalize_roster(names: list[str]) -> list[str]:
    """Trim, drop blanks and duplicates, keep first-seen order."""
    result = []
    for name in names:
        name = name.strip()
        if name and name not in result:
            result.append(name)
    return result
