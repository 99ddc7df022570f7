"""CSV parser for MT5 trade-history report imports.

Handles detailed statements, account (deal) history, report history and
loosely structured exports. The layout is detected from the header row,
then every following line is mapped into a ParsedTradeRow.
"""

import codecs
import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from fxjournal.lib.config import HEADER_KEYWORDS, HEADER_SCAN_LINES
from fxjournal.lib.csv_models import ParsedTradeRow
from fxjournal.lib.errors import CSVParseError
from fxjournal.lib.mt5_dates import parse_mt5_date
from fxjournal.lib.mt5_formats import (
    ABSENT,
    ColumnMap,
    FormatDetection,
    SUMMARY_ROW_MARKERS,
    detect_format,
)
from fxjournal.models.trade import TradeSide

logger = logging.getLogger(__name__)


def tokenize_line(line: str) -> list[str]:
    """Split one CSV line into fields, keeping quoted commas inside their field.

    Example:
        >>> tokenize_line('1001,"EURUSD, mini",buy')
        ['1001', 'EURUSD, mini', 'buy']
    """
    return next(csv.reader([line]), [""])


def find_header(lines: list[str]) -> tuple[int, list[str]]:
    """Locate the column header among the first report lines.

    Report exports may start with account/period metadata; the header is the
    first line mentioning a trade column.

    Args:
        lines: Non-blank report lines

    Returns:
        (index of the header line, header fields). When no header is found
        the index is 0 and the header is empty.
    """
    for index, line in enumerate(lines[:HEADER_SCAN_LINES]):
        lowered = line.lower()
        if any(keyword in lowered for keyword in HEADER_KEYWORDS):
            try:
                return index, tokenize_line(line.strip())
            except csv.Error as e:
                logger.warning(f"Ignoring unreadable header candidate: {e}")
    return 0, []


def decode_report(raw: bytes) -> str:
    """Decode an uploaded report. MT5 terminals export UTF-16 with a BOM."""
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return raw.decode("utf-16")
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _to_decimal(value: str) -> Decimal:
    """Parse a numeric cell; blanks and garbage become 0."""
    # Some locales group thousands with (non-breaking) spaces
    cleaned = value.strip().replace(" ", "").replace("\u00a0", "")
    if not cleaned:
        return Decimal("0")
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def _cell(fields: list[str], index: int) -> str:
    if index == ABSENT or index >= len(fields):
        return ""
    return fields[index].strip()


@dataclass(frozen=True)
class SkippedLine:
    """A data line that could not be mapped into a trade row."""

    line_number: int
    reason: str


class ParseResult:
    """Result of parsing a CSV report."""

    def __init__(
        self,
        trades: list[ParsedTradeRow],
        skipped_lines: list[SkippedLine],
        detection: FormatDetection,
        total_lines: int,
        header_line: int,
    ):
        self.trades = trades
        self.skipped_lines = skipped_lines
        self.detection = detection
        self.total_lines = total_lines  # data lines after the header
        self.header_line = header_line  # 1-based, 0 when no header was found


class MT5CSVParser:
    """Parser for MT5 trade-history CSV exports.

    Statement and account-history exports are read by fixed column position.
    Report-history and unknown exports are read by matching header names.
    """

    def parse(self, csv_content: str) -> ParseResult:
        """Parse report text into trade rows.

        Args:
            csv_content: Full text of the uploaded report

        Returns:
            ParseResult with the parsed rows and skipped lines

        Raises:
            CSVParseError: Report has fewer than two non-blank lines
        """
        numbered = [
            (number, line)
            for number, line in enumerate(csv_content.splitlines(), start=1)
            if line.strip()
        ]
        if len(numbered) < 2:
            raise CSVParseError("CSV file appears to be empty or invalid")

        header_index, header_fields = find_header([line for _, line in numbered])
        detection = detect_format(header_fields)
        header_line = numbered[header_index][0] if header_fields else 0

        logger.info(
            f"Detected {detection.format.value} report "
            f"(header at line {header_line}, {len(numbered) - header_index - 1} data lines)"
        )
        if detection.columns.missing_mandatory:
            logger.warning(
                f"Report header lacks required columns: {', '.join(detection.columns.missing_mandatory)}"
            )

        imported_at = datetime.now()
        trades: list[ParsedTradeRow] = []
        skipped: list[SkippedLine] = []
        data_lines = numbered[header_index + 1 :]

        for line_number, line in data_lines:
            try:
                fields = tokenize_line(line.strip())
                row = self.parse_fields(fields, detection, line_number, imported_at)
            except (csv.Error, ValueError, InvalidOperation, PydanticValidationError) as e:
                logger.warning(f"Error parsing line {line_number}: {e}")
                logger.debug(f"Line content: {line[:100]}")
                skipped.append(SkippedLine(line_number=line_number, reason=str(e)))
                continue

            if row is None:
                logger.debug(f"Line {line_number} is not a trade row, dropped")
                continue

            trades.append(row)

        logger.info(f"Parsed {len(trades)} trade rows ({len(skipped)} lines skipped)")

        return ParseResult(
            trades=trades,
            skipped_lines=skipped,
            detection=detection,
            total_lines=len(data_lines),
            header_line=header_line,
        )

    def parse_file(self, filepath: Path) -> ParseResult:
        """Parse a report file from disk."""
        return self.parse(decode_report(filepath.read_bytes()))

    def parse_fields(
        self,
        fields: list[str],
        detection: FormatDetection,
        line_number: int,
        imported_at: datetime,
    ) -> ParsedTradeRow | None:
        """Map the fields of one data line into a trade row.

        Returns:
            ParsedTradeRow, or None when the line is not a trade (too short,
            missing mandatory cells, repeated header or summary footer)
        """
        columns = detection.columns
        positional = detection.format.is_positional

        if positional:
            if len(fields) < columns.min_fields:
                return None
        elif columns.missing_mandatory:
            return None

        ticket = _cell(fields, columns.ticket)
        time_text = _cell(fields, columns.open_time)
        type_text = _cell(fields, columns.type)
        symbol = _cell(fields, columns.symbol)

        if not ticket or not time_text or not type_text or not symbol:
            return None

        if not positional:
            if self._is_header_echo(columns, ticket, time_text, type_text):
                return None
            if any(marker in ticket for marker in SUMMARY_ROW_MARKERS):
                return None

        open_price = _to_decimal(_cell(fields, columns.open_price))
        close_price = _to_decimal(_cell(fields, columns.close_price))
        if not positional and not close_price:
            close_price = open_price

        close_text = _cell(fields, columns.close_time)
        close_time = parse_mt5_date(close_text) if close_text else None

        return ParsedTradeRow(
            ticket=ticket,
            open_time=parse_mt5_date(time_text),
            close_time=close_time or imported_at,
            side=TradeSide.BUY if "buy" in type_text.lower() else TradeSide.SELL,
            symbol=symbol,
            volume=_to_decimal(_cell(fields, columns.volume)),
            open_price=open_price,
            close_price=close_price,
            profit=_to_decimal(_cell(fields, columns.profit)),
            commission=_to_decimal(_cell(fields, columns.commission)),
            swap=_to_decimal(_cell(fields, columns.swap)),
            comment="",
            line_number=line_number,
        )

    @staticmethod
    def _is_header_echo(columns: ColumnMap, ticket: str, time_text: str, type_text: str) -> bool:
        """True when the row repeats the header (e.g. reports concatenated together)."""
        checks = (
            (ticket, columns.ticket, "ticket"),
            (time_text, columns.open_time, "time"),
            (type_text, columns.type, "type"),
        )
        for value, index, literal in checks:
            lowered = value.lower()
            if lowered == literal or lowered == _cell(list(columns.header), index):
                return True
        return False
