"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative forms "today", "yesterday", "start of month", "start of year",
    "end of last month" and "end of last year".

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "start of month": today.replace(day=1),
        "start of year": today.replace(month=1, day=1),
        "end of last month": today.replace(day=1) - timedelta(days=1),
        "end of last year": today.replace(month=1, day=1) - timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates for a reporting period.

    Args:
        period: this-month, last-month, this-quarter, last-quarter, this-year or last-year
        today: Reference date (defaults to today)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()
    quarter_start = today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)

    if period == "this-month":
        return today.replace(day=1), today
    if period == "last-month":
        end = today.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    if period == "this-quarter":
        return quarter_start, today
    if period == "last-quarter":
        start = quarter_start - relativedelta(months=3)
        return start, quarter_start - timedelta(days=1)
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, start.replace(month=12, day=31)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
        "this-quarter, last-quarter, this-year, last-year"
    )


def month_key(d: date) -> str:
    """Return the "YYYY-MM" key of a date."""
    return f"{d.year:04d}-{d.month:02d}"


def trailing_months(count: int, today: date | None = None) -> list[date]:
    """First day of each of the last `count` calendar months, oldest first.

    The current month is always the last element.
    """
    first = (today or date.today()).replace(day=1)
    return [first - relativedelta(months=offset) for offset in range(count - 1, -1, -1)]


def end_of_month(d: date) -> date:
    return d.replace(day=1) + relativedelta(months=1) - timedelta(days=1)
