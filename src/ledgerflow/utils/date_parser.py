"""Date parsing utilities."""

from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser


def parse_date(date_str: str, date_format: Optional[str] = None) -> date:
    """Parse a date string into a date object.

    With an explicit format the string must match it exactly (strptime
    syntax, e.g. "%m/%d/%Y"). Without one, dateutil guesses the layout,
    which handles "2024-01-15", "01/15/2024", "January 15, 2024" and
    timestamps such as "2024-01-15T08:30:00". Any time component is dropped.

    Args:
        date_str: Date string
        date_format: Optional strptime format

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip()
    if not date_str:
        raise ValueError("Empty date string")

    if date_format is not None:
        try:
            return datetime.strptime(date_str, date_format).date()
        except ValueError:
            raise ValueError(f"Could not parse date '{date_str}' with format '{date_format}'")

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
