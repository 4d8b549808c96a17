from datetime import date, datetime, timezone
from enum import Enum
import math
import re

MS_PER_DAY = 86_400_000

_NON_NUMERIC = re.compile(r"[^\d.-]")


def _is_real_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_optional_number(value) -> float | None:
    """Coerce a loosely typed field to a finite number, None when absent or unparseable."""
    if value is None:
        return None
    if _is_real_number(value) and math.isfinite(value):
        return value
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        number = float(cleaned) if cleaned else 0.0
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def to_number(value) -> float:
    """Coerce a loosely typed field to a finite number. Never raises; defaults to 0."""
    number = to_optional_number(value)
    return 0 if number is None else number


def parse_datetime(value) -> datetime | None:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime, None on failure."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _epoch_ms(value: datetime) -> float:
    return value.timestamp() * 1000


def to_timestamp(value) -> float:
    """Due-date timestamp in epoch milliseconds; +inf when missing so unscheduled sorts last."""
    parsed = parse_datetime(value)
    return math.inf if parsed is None else _epoch_ms(parsed)


def to_paid_timestamp(value) -> float:
    """Paid-date timestamp in epoch milliseconds; -inf when missing so never-paid sorts last."""
    parsed = parse_datetime(value)
    return -math.inf if parsed is None else _epoch_ms(parsed)


def utc_midnight(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def days_from_today(timestamp_ms: float, now: datetime | None = None) -> int | None:
    """Calendar-day distance between a timestamp and today's UTC midnight."""
    if timestamp_ms is None or not math.isfinite(timestamp_ms):
        return None
    today_ms = _epoch_ms(utc_midnight(now))
    return round_half_up((timestamp_ms - today_ms) / MS_PER_DAY)


def days_until(target: datetime, now: datetime) -> int:
    """Whole days until ``target``, rounding any partial day up."""
    return math.ceil((target - now).total_seconds() * 1000 / MS_PER_DAY)


def fmt_ymd(value) -> str:
    if not value:
        return "—"
    parsed = parse_datetime(value)
    if parsed is None:
        text = str(value)
        return text.split("T")[0] if "T" in text else text
    return parsed.strftime("%Y-%m-%d")


def fmt_month_day(value: datetime) -> str:
    """Short month and day, e.g. ``Oct 18``."""
    return f"{value:%b} {value.day}"


def fmt_month_year(value: datetime) -> str:
    """Short month and two-digit year, e.g. ``Oct 26``."""
    return f"{value:%b %y}"


def format_money(value) -> str:
    return f"${to_number(value):.2f}"


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def convert_to_api_dict(data: dict) -> dict:
    """Convert snake_case keys to camelCase and complex values to JSON-friendly types."""
    result = {}
    for key, value in data.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, dict):
            value = convert_to_api_dict(value)
        elif isinstance(value, list):
            value = [convert_to_api_dict(item) if isinstance(item, dict) else item for item in value]
        result[_camel(key)] = value
    return result


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, as dashboards display amounts."""
    return int(math.floor(value + 0.5))
