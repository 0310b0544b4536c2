"""Business-day helpers.

The lab runs on China Standard Time (UTC+8). Report dates are calendar days
in that offset, never the caller's local clock. Timestamps are created as
aware UTC+8 datetimes; whatever comes back from storage (naive UTC+8 wall
clock or aware UTC) is normalized by ``as_business_time``.
"""
from datetime import UTC, date, datetime, timedelta, timezone
from typing import NamedTuple

BUSINESS_TZ = timezone(timedelta(hours=8))

WEEKDAY_LABELS = ["周一", "周二", "周三", "周四", "周五"]


class WeekDay(NamedTuple):
    date: str
    label: str


def business_now() -> datetime:
    """Current time as an aware UTC+8 datetime."""
    return datetime.now(UTC).astimezone(BUSINESS_TZ)


def business_today() -> str:
    """Today's report date key in UTC+8."""
    return business_now().date().isoformat()


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string. Raises ValueError otherwise."""
    if not isinstance(value, str) or len(value) != 10:
        raise ValueError(f"Invalid date format: {value!r}. Use YYYY-MM-DD")
    day = datetime.strptime(value, "%Y-%m-%d").date()
    # strptime tolerates padding such as "2024-01- 5"
    if day.isoformat() != value:
        raise ValueError(f"Invalid date format: {value!r}. Use YYYY-MM-DD")
    return day


def week_monday(today: str) -> date:
    """Monday of the week containing ``today``.

    Saturday maps to the Monday of the same week, Sunday to the preceding one.
    """
    day = parse_date(today)
    return day - timedelta(days=day.weekday())


def week_dates(today: str) -> list[WeekDay]:
    """Monday through Friday of the week containing ``today``."""
    monday = week_monday(today)
    return [
        WeekDay((monday + timedelta(days=i)).isoformat(), label)
        for i, label in enumerate(WEEKDAY_LABELS)
    ]


def is_weekend(value: str) -> bool:
    return parse_date(value).weekday() >= 5


def format_chinese_date(value: str) -> str:
    """2024-01-15 -> 1月15日"""
    day = parse_date(value)
    return f"{day.month}月{day.day}日"


def as_business_time(value: datetime | str) -> datetime:
    """Normalize a stored or serialized timestamp to an aware UTC+8 datetime.

    Naive values are taken to already be UTC+8 wall-clock time.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=BUSINESS_TZ)
    return value.astimezone(BUSINESS_TZ)


def format_time(value: datetime | str | None) -> str:
    """HH:MM in UTC+8; unparseable strings are returned unchanged."""
    if value is None:
        return ""
    try:
        moment = as_business_time(value)
    except ValueError:
        return str(value)
    return moment.strftime("%H:%M")


def business_timestamp() -> str:
    """Current UTC+8 time as an ISO string with offset."""
    return business_now().isoformat()
