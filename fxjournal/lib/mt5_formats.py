"""
MT5 report layouts and header-based format detection.

Broker exports are not standardized, so the layout of a report is guessed
from its header row: the first matching rule wins, and column positions
are either fixed (statement/history exports) or located by keyword.
"""

import enum
from dataclasses import dataclass, field, replace


class DetectedFormat(str, enum.Enum):
    """Report layouts recognised by the CSV parser."""

    DETAILED_STATEMENT = "detailed_statement"
    ACCOUNT_HISTORY = "account_history"
    REPORT_HISTORY = "report_history"
    GENERIC = "generic"

    @property
    def is_positional(self) -> bool:
        """True when columns are read by fixed position."""
        return self in (DetectedFormat.DETAILED_STATEMENT, DetectedFormat.ACCOUNT_HISTORY)


ABSENT = -1


@dataclass(frozen=True)
class ColumnMap:
    """Column index of each trade field (ABSENT when the report lacks it)."""

    ticket: int = ABSENT
    open_time: int = ABSENT
    close_time: int = ABSENT
    type: int = ABSENT
    symbol: int = ABSENT
    volume: int = ABSENT
    open_price: int = ABSENT
    close_price: int = ABSENT
    profit: int = ABSENT
    commission: int = ABSENT
    swap: int = ABSENT
    min_fields: int = 0  # Rows with fewer fields are rejected
    header: tuple[str, ...] = field(default_factory=tuple)  # Lower-cased header names

    MANDATORY = ("ticket", "open_time", "type", "symbol")

    @property
    def missing_mandatory(self) -> list[str]:
        """Mandatory fields that have no column."""
        return [name for name in self.MANDATORY if getattr(self, name) == ABSENT]


@dataclass(frozen=True)
class FormatDetection:
    """Detected layout of a report and where to find each field."""

    format: DetectedFormat
    columns: ColumnMap


# Ticket,Open Time,Type,Size,Item,Price,S/L,T/P,Close Time,Price,Commission,Swap,Profit
DETAILED_STATEMENT_COLUMNS = ColumnMap(
    ticket=0,
    open_time=1,
    type=2,
    volume=3,
    symbol=4,
    open_price=5,
    close_time=8,
    close_price=9,
    commission=10,
    swap=11,
    profit=12,
    min_fields=13,
)

# Deal,Time,Type,Symbol,Volume,Price,Order,Commission,Swap,Profit
# Deals have a single timestamp and price
ACCOUNT_HISTORY_COLUMNS = ColumnMap(
    ticket=0,
    open_time=1,
    type=2,
    symbol=3,
    volume=4,
    open_price=5,
    close_price=5,
    commission=7,
    swap=8,
    profit=9,
    min_fields=10,
)

# Keyword lists for header matching
# Format: field -> substrings, first header column containing any of them wins
REPORT_HISTORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "ticket": ("ticket", "deal", "order", "position"),
    "open_time": ("time", "date"),
    "type": ("type", "side"),
    "symbol": ("symbol", "item", "instrument"),
    "volume": ("volume", "size", "lots"),
    "open_price": ("price",),
    "profit": ("profit", "pnl", "result"),
    "commission": ("commission", "comm"),
    "swap": ("swap", "rollover"),
}

GENERIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "ticket": ("ticket", "deal"),
    "open_time": ("time", "date"),
    "type": ("type",),
    "symbol": ("symbol", "item"),
    "volume": ("volume", "size"),
    "open_price": ("price",),
    "profit": ("profit",),
}

# Second occurrence of a paired column, searched after the first one
# Format: closing field -> (opening field, substrings)
PAIRED_KEYWORDS: dict[str, tuple[str, tuple[str, ...]]] = {
    "close_time": ("open_time", ("time",)),
    "close_price": ("open_price", ("price",)),
}

# Ticket cell contents that mark report footer/summary rows
SUMMARY_ROW_MARKERS = (
    "Total",
    "Profit",
    "Loss",
    "Average",
    "Maximum",
    "Largest",
    "Balance",
    "Drawdown",
    "Factor",
    "Recovery",
    "Sharpe",
    "Results",
    "Trades",
    "consecutive",
    "count",
)


def find_column(header: list[str], keywords: tuple[str, ...], after: int = ABSENT) -> int:
    """Index of the first header column after `after` containing any keyword.

    Args:
        header: Lower-cased header names
        keywords: Substrings to look for
        after: Only columns with a greater index are considered

    Returns:
        Column index, or ABSENT
    """
    for index, name in enumerate(header):
        if index > after and any(keyword in name for keyword in keywords):
            return index
    return ABSENT


def map_columns(header: list[str], keywords: dict[str, tuple[str, ...]], paired: bool) -> ColumnMap:
    """Build a ColumnMap by keyword matching against header names."""
    indices = {name: find_column(header, words) for name, words in keywords.items()}

    if paired:
        for closing, (opening, words) in PAIRED_KEYWORDS.items():
            first = indices.get(opening, ABSENT)
            indices[closing] = find_column(header, words, after=first) if first != ABSENT else ABSENT

    return ColumnMap(header=tuple(header), **indices)


def detect_format(header_fields: list[str]) -> FormatDetection:
    """Classify a report by its header row.

    Priority (first match wins):
        1. DETAILED_STATEMENT: header has "ticket" and "open time"
        2. ACCOUNT_HISTORY: header has "deal" and "time"
        3. REPORT_HISTORY: header has "ticket", "time" or "type"
        4. GENERIC otherwise

    Args:
        header_fields: Header cells as they appear in the report

    Returns:
        FormatDetection with the layout and its column map

    Example:
        >>> detect_format(["Deal", "Time", "Type", "Symbol"]).format
        <DetectedFormat.ACCOUNT_HISTORY: 'account_history'>
    """
    header = [name.strip().lower() for name in header_fields]
    text = ",".join(header)

    if "ticket" in text and "open time" in text:
        return FormatDetection(
            DetectedFormat.DETAILED_STATEMENT,
            replace(DETAILED_STATEMENT_COLUMNS, header=tuple(header)),
        )

    if "deal" in text and "time" in text:
        return FormatDetection(
            DetectedFormat.ACCOUNT_HISTORY,
            replace(ACCOUNT_HISTORY_COLUMNS, header=tuple(header)),
        )

    if any(keyword in text for keyword in ("ticket", "time", "type")):
        return FormatDetection(
            DetectedFormat.REPORT_HISTORY,
            map_columns(header, REPORT_HISTORY_KEYWORDS, paired=True),
        )

    return FormatDetection(DetectedFormat.GENERIC, map_columns(header, GENERIC_KEYWORDS, paired=False))
