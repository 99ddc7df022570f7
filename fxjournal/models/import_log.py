"""
Import audit log model for tracking trade-history imports.

One record is written per import run with counts, status and the issues
encountered. Records are never modified after the run finishes.
"""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import TIMESTAMP, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fxjournal.lib.db import Base

if TYPE_CHECKING:
    from fxjournal.models.import_issue import ImportIssueRecord


class ImportStatus(str, enum.Enum):
    """Overall outcome of an import run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class ImportMethod(str, enum.Enum):
    """How the trades reached the journal."""

    MANUAL = "manual"  # CSV upload
    API = "api"  # broker sync


class ImportAuditLog(Base):  # type: ignore[misc,valid-type]
    """
    Represents one trade-history import run.

    Attributes:
        id: Unique identifier for the run
        method: Import method (manual CSV upload or API sync)
        imported_at: Timestamp when the run finished
        trades_count: Number of valid trade rows seen
        new_trades: Number of trades persisted
        updated_trades: Number of trades updated in place (always 0)
        skipped_trades: Number of duplicate rows skipped
        imported_by: Identity that started the import
        filename: Original report filename, if known
        profile_id: Profile the trades were imported into
        status: success, partial or failed
        duration_seconds: Time taken for the run
    """

    __tablename__ = "import_logs"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    method: Mapped[ImportMethod] = mapped_column(
        Enum(ImportMethod),
        nullable=False,
        default=ImportMethod.MANUAL,
    )

    imported_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    # Statistics
    trades_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    imported_by: Mapped[str] = mapped_column(String(200), nullable=False)

    filename: Mapped[str | None] = mapped_column(String(500), nullable=True)

    profile_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    status: Mapped[ImportStatus] = mapped_column(
        Enum(ImportStatus),
        nullable=False,
        index=True,
    )

    duration_seconds: Mapped[float | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    # Relationships
    issues: Mapped[list["ImportIssueRecord"]] = relationship(
        "ImportIssueRecord",
        back_populates="log",
        cascade="all, delete-orphan",
        order_by="ImportIssueRecord.id",
    )

    @property
    def error_messages(self) -> list[str]:
        """Rendered issue messages in the order they were recorded."""
        return [issue.message for issue in self.issues]

    def __repr__(self) -> str:
        """Return string representation of import log."""
        return (
            f"<ImportAuditLog(id={self.id}, "
            f"profile={self.profile_id!r}, "
            f"status={self.status.value}, "
            f"new={self.new_trades}, "
            f"skipped={self.skipped_trades})>"
        )
