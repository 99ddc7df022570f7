"""
Field checks for parsed trade rows.

Rows are never rejected by raising; each failing row yields one
ImportIssue listing every reason it failed.
"""

import logging
from dataclasses import dataclass, field

from fxjournal.lib.csv_models import ParsedTradeRow
from fxjournal.models.import_issue import ImportIssue, ImportIssueType, ValidationReason

logger = logging.getLogger(__name__)


@dataclass
class ValidationOutcome:
    """Rows that passed validation and issues for those that did not."""

    valid: list[ParsedTradeRow] = field(default_factory=list)
    issues: list[ImportIssue] = field(default_factory=list)


def check_trade(row: ParsedTradeRow) -> list[ValidationReason]:
    """
    Collect every validation failure of a row.

    Args:
        row: Parsed trade row

    Returns:
        Reasons in check order; empty when the row is valid
    """
    reasons = []
    if not row.ticket:
        reasons.append(ValidationReason.MISSING_TICKET)
    if not row.symbol:
        reasons.append(ValidationReason.MISSING_SYMBOL)
    if row.open_time is None:
        reasons.append(ValidationReason.INVALID_OPEN_TIME)
    if row.volume <= 0:
        reasons.append(ValidationReason.INVALID_VOLUME)
    # Zero is allowed (e.g. balance or credit rows)
    if row.open_price < 0:
        reasons.append(ValidationReason.INVALID_PRICE)
    return reasons


def validate_trades(rows: list[ParsedTradeRow]) -> ValidationOutcome:
    """
    Split parsed rows into valid rows and validation issues.

    Args:
        rows: Parsed trade rows in report order

    Returns:
        ValidationOutcome; order of rows and issues follows the input
    """
    outcome = ValidationOutcome()

    for row in rows:
        reasons = check_trade(row)
        if not reasons:
            outcome.valid.append(row)
            continue

        issue = ImportIssue(
            type=ImportIssueType.VALIDATION,
            line_number=row.line_number,
            ticket=row.ticket or None,
            reasons=tuple(reasons),
        )
        logger.debug(f"Rejected row: {issue.message}")
        outcome.issues.append(issue)

    logger.info(f"Validation: {len(outcome.valid)} valid, {len(outcome.issues)} rejected")
    return outcome
