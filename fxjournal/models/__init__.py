"""
SQLAlchemy models for the fx-journal application.

All models inherit from the Base declarative class defined in fxjournal.lib.db.
"""

from fxjournal.models.config_document import ConfigDocument
from fxjournal.models.import_issue import (
    ImportIssue,
    ImportIssueRecord,
    ImportIssueType,
    ValidationReason,
)
from fxjournal.models.import_log import ImportAuditLog, ImportMethod, ImportStatus
from fxjournal.models.trade import Trade, TradeSide, TradeStatus

__all__ = [
    # Core models
    "Trade",
    # Import models
    "ImportAuditLog",
    "ImportIssueRecord",
    "ImportIssue",
    # Configuration
    "ConfigDocument",
    # Enums
    "TradeSide",
    "TradeStatus",
    "ImportStatus",
    "ImportMethod",
    "ImportIssueType",
    "ValidationReason",
]
