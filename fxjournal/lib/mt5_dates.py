"""
Timestamp parsing for broker report exports.

MT5 terminals format dates according to broker and locale settings; the
known layouts are tried in order before falling back to dateutil.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

_TIME = r"\s+(?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?$"

# Known broker layouts, first match wins
MT5_DATE_PATTERNS = [
    re.compile(r"^(?P<year>\d{4})\.(?P<month>\d{2})\.(?P<day>\d{2})" + _TIME),  # 2024.01.31 10:30[:00]
    re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})" + _TIME),  # 2024-01-31 10:30[:00]
    re.compile(r"^(?P<day>\d{2})\.(?P<month>\d{2})\.(?P<year>\d{4})" + _TIME),  # 31.01.2024 10:30[:00]
    re.compile(r"^(?P<day>\d{2})/(?P<month>\d{2})/(?P<year>\d{4})" + _TIME),  # 31/01/2024 10:30[:00]
]


def parse_mt5_date(value: str) -> Optional[datetime]:
    """
    Parse a broker timestamp into a naive datetime.

    Args:
        value: Timestamp text from the report

    Returns:
        Parsed datetime, or None when the text is not a valid date

    Examples:
        >>> parse_mt5_date("2024.01.01 10:30")
        datetime.datetime(2024, 1, 1, 10, 30)
        >>> parse_mt5_date("31/01/2024 23:59:59")
        datetime.datetime(2024, 1, 31, 23, 59, 59)
        >>> parse_mt5_date("not a date") is None
        True
    """
    value = value.strip()
    if not value:
        return None

    for pattern in MT5_DATE_PATTERNS:
        match = pattern.match(value)
        if match:
            parts = match.groupdict()
            try:
                return datetime(
                    int(parts["year"]),
                    int(parts["month"]),
                    int(parts["day"]),
                    int(parts["hour"]),
                    int(parts["minute"]),
                    int(parts["second"] or 0),
                )
            except ValueError:
                logger.debug(f"Out of range timestamp: {value!r}")
                return None

    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None

    # Report timestamps are naive; normalise offsets to UTC wall time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
