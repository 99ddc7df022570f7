"""Duplicate detection for imported trades.

A trade is a duplicate when its broker ticket already exists in the target
profile, or repeats an earlier row of the same upload. Existing tickets are
looked up in batches to keep IN-lists short.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fxjournal.lib.config import DUPLICATE_CHECK_BATCH_SIZE
from fxjournal.lib.csv_models import ParsedTradeRow
from fxjournal.models import Trade

logger = logging.getLogger(__name__)


@dataclass
class DuplicateCheckOutcome:
    """Rows split by whether their ticket is already known."""

    existing_tickets: set[str] = field(default_factory=set)
    new_rows: list[ParsedTradeRow] = field(default_factory=list)
    duplicate_rows: list[ParsedTradeRow] = field(default_factory=list)
    failed_batches: int = 0  # lookups that failed and were treated as "no duplicates"


class DuplicateChecker:
    """Finds trade rows whose ticket is already stored for a profile."""

    def __init__(self, session: Session, batch_size: int = DUPLICATE_CHECK_BATCH_SIZE):
        """Initialize duplicate checker.

        Args:
            session: Database session used for the lookups
            batch_size: Maximum ticket ids per query
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.session = session
        self.batch_size = batch_size

    def partition(self, rows: list[ParsedTradeRow], profile_id: str) -> DuplicateCheckOutcome:
        """Split rows into new rows and duplicates.

        Args:
            rows: Validated rows in report order
            profile_id: Profile the trades are imported into

        Returns:
            DuplicateCheckOutcome; row order is preserved in both lists
        """
        outcome = DuplicateCheckOutcome()
        tickets = list(dict.fromkeys(row.ticket for row in rows))

        for start in range(0, len(tickets), self.batch_size):
            batch = tickets[start : start + self.batch_size]
            try:
                outcome.existing_tickets |= self._fetch_existing(batch, profile_id)
            except SQLAlchemyError as e:
                # Trades of this batch may be imported twice; the unique
                # constraint rejects them at save time
                outcome.failed_batches += 1
                logger.error(
                    f"Duplicate check failed for tickets {batch[0]}..{batch[-1]} "
                    f"({len(batch)} ids), treating them as new: {e}"
                )

        seen: set[str] = set()
        for row in rows:
            if row.ticket in outcome.existing_tickets or row.ticket in seen:
                outcome.duplicate_rows.append(row)
            else:
                outcome.new_rows.append(row)
            seen.add(row.ticket)

        logger.info(
            f"Duplicate check for profile {profile_id}: "
            f"{len(outcome.new_rows)} new, {len(outcome.duplicate_rows)} duplicates"
        )
        return outcome

    def _fetch_existing(self, tickets: list[str], profile_id: str) -> set[str]:
        """Tickets from `tickets` that already exist in the profile."""
        stmt = select(Trade.mt5_ticket_id).where(
            Trade.profile_id == profile_id,
            Trade.mt5_ticket_id.in_(tickets),
        )
        return {ticket for ticket in self.session.execute(stmt).scalars() if ticket}
