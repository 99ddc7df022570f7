"""
Import issue types and persisted issue records.

Row-level problems found during an import are carried as ImportIssue values
and rendered to text only when displayed or written to the audit log.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import TIMESTAMP, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fxjournal.lib.db import Base

if TYPE_CHECKING:
    from fxjournal.models.import_log import ImportAuditLog


class ImportIssueType(str, enum.Enum):
    """Enumeration of import issue types."""

    PARSE = "parse"  # Report could not be read
    VALIDATION = "validation"  # Row failed a field check
    PERSISTENCE = "persistence"  # Writing the trade failed
    NO_VALID_TRADES = "no_valid_trades"  # Nothing left to import


class ValidationReason(str, enum.Enum):
    """Field-level validation failures of a parsed trade row."""

    MISSING_TICKET = "missing_ticket"
    MISSING_SYMBOL = "missing_symbol"
    INVALID_OPEN_TIME = "invalid_open_time"
    INVALID_VOLUME = "invalid_volume"
    INVALID_PRICE = "invalid_price"

    @property
    def label(self) -> str:
        """Human-readable description."""
        return VALIDATION_REASON_LABELS[self]


VALIDATION_REASON_LABELS = {
    ValidationReason.MISSING_TICKET: "Missing ticket ID",
    ValidationReason.MISSING_SYMBOL: "Missing symbol",
    ValidationReason.INVALID_OPEN_TIME: "Invalid open time",
    ValidationReason.INVALID_VOLUME: "Invalid volume",
    ValidationReason.INVALID_PRICE: "Invalid open price (negative)",
}


@dataclass(frozen=True)
class ImportIssue:
    """A single problem found during an import run."""

    type: ImportIssueType
    line_number: int | None = None
    ticket: str | None = None
    reasons: tuple[ValidationReason, ...] = field(default_factory=tuple)
    detail: str = ""

    @property
    def message(self) -> str:
        """Render the issue for display."""
        if self.type == ImportIssueType.VALIDATION:
            labels = ", ".join(reason.label for reason in self.reasons)
            return f"Line {self.line_number} ({self.ticket or ''}): {labels}"
        if self.type == ImportIssueType.PERSISTENCE:
            return f"Failed to save trade {self.ticket}: {self.detail}"
        if self.type == ImportIssueType.NO_VALID_TRADES:
            return "No valid trades found in CSV file"
        if self.line_number is not None:
            return f"Line {self.line_number}: {self.detail}"
        return self.detail

    def to_record(self) -> "ImportIssueRecord":
        """Build the persisted form of this issue."""
        return ImportIssueRecord(
            issue_type=self.type,
            line_number=self.line_number,
            ticket=self.ticket,
            reasons=[reason.value for reason in self.reasons],
            detail=self.detail,
            message=self.message,
        )


class ImportIssueRecord(Base):  # type: ignore[misc,valid-type]
    """
    Persisted issue belonging to an import audit log.

    Attributes:
        id: Unique identifier for the issue
        log_id: Reference to the import audit log
        issue_type: Type of issue (parse, validation, persistence, ...)
        line_number: 1-based line in the uploaded report, if any
        ticket: Broker ticket id of the affected row, if any
        reasons: Validation reasons as a JSON list
        detail: Underlying error text (e.g. database error)
        message: Rendered message
        created_at: Timestamp when the issue was recorded
    """

    __tablename__ = "import_issues"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    log_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("import_logs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    issue_type: Mapped[ImportIssueType] = mapped_column(
        Enum(ImportIssueType),
        nullable=False,
        index=True,
    )

    line_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    ticket: Mapped[str | None] = mapped_column(String(50), nullable=True)

    reasons: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    detail: Mapped[str] = mapped_column(Text, nullable=False, default="")

    message: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    log: Mapped["ImportAuditLog"] = relationship(
        "ImportAuditLog",
        back_populates="issues",
    )

    def to_issue(self) -> ImportIssue:
        """Rebuild the in-memory issue from the stored record."""
        return ImportIssue(
            type=self.issue_type,
            line_number=self.line_number,
            ticket=self.ticket,
            reasons=tuple(ValidationReason(r) for r in self.reasons or []),
            detail=self.detail,
        )

    def __repr__(self) -> str:
        """Return string representation of import issue."""
        return (
            f"<ImportIssueRecord(id={self.id}, "
            f"log_id={self.log_id}, "
            f"line={self.line_number}, "
            f"type={self.issue_type.value})>"
        )
