"""Import service for MT5 trade-history CSV imports.

Runs parsing, validation, duplicate detection, conversion and persistence
for one uploaded report and records an audit log for every run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fxjournal.lib.config import (
    MAX_CONSECUTIVE_SAVE_FAILURES,
    SYNC_METHOD_MANUAL,
    VIP_MIN_STARTING_BALANCE,
    VIP_STATS_SOURCES,
)
from fxjournal.lib.csv_models import ParsedTradeRow
from fxjournal.lib.db import db_session
from fxjournal.lib.errors import CSVParseError, DatabaseError, ImportLogNotFoundError
from fxjournal.models import (
    ImportAuditLog,
    ImportIssue,
    ImportIssueRecord,
    ImportIssueType,
    ImportMethod,
    ImportStatus,
    Trade,
    TradeStatus,
)
from fxjournal.services.csv_parser import MT5CSVParser, SkippedLine, decode_report
from fxjournal.services.duplicate_checker import DuplicateChecker
from fxjournal.services.trade_converter import TradeConverter
from fxjournal.services.trade_validator import validate_trades
from fxjournal.services.vip_config import ImportScope, VipConfigService

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (TradeStatus.CLOSED, TradeStatus.LOSS, TradeStatus.BREAKEVEN)


@dataclass
class ImportResult:
    """Outcome of one import run."""

    success: bool  # True when no trade failed to save
    status: ImportStatus
    new_trades: int
    updated_trades: int  # Update-in-place is not supported, always 0
    skipped_trades: int  # Duplicates
    issues: list[ImportIssue]
    trades: list[ParsedTradeRow]  # Valid parsed rows
    audit_log_id: int | None
    skipped_lines: list[SkippedLine] = field(default_factory=list)
    aborted: bool = False  # Stopped early after repeated save failures

    @property
    def error_messages(self) -> list[str]:
        """Issues rendered for display."""
        return [issue.message for issue in self.issues]


@dataclass
class ImportLogInfo:
    """Summary information about an import run."""

    log_id: int
    imported_at: datetime
    method: str
    filename: str | None
    imported_by: str
    profile_id: str
    trades_count: int
    new_trades: int
    updated_trades: int
    skipped_trades: int
    error_count: int
    status: str
    duration: float


@dataclass
class VipStats:
    """Performance summary of a VIP profile's closed trades."""

    total_trades: int
    winning_trades: int
    losing_trades: int
    total_profit: float
    win_rate: float  # percent
    average_win: float
    average_loss: float  # negative or 0
    best_trade: float
    worst_trade: float
    starting_balance: float  # estimate
    current_balance: float
    last_updated: datetime | None  # time of the profile's latest import
    sync_method: str


class ImportService:
    """Service for importing MT5 trades into the journal."""

    def __init__(
        self,
        vip_config: VipConfigService | None = None,
        parser: MT5CSVParser | None = None,
    ):
        """Initialize import service.

        Args:
            vip_config: Resolves the default import scope (default: VipConfigService())
            parser: CSV parser (default: MT5CSVParser())
        """
        self.vip_config = vip_config or VipConfigService()
        self.parser = parser or MT5CSVParser()

    def import_file(
        self,
        filepath: Path,
        imported_by: str,
        scope: ImportScope | None = None,
    ) -> ImportResult:
        """Import trades from a report file.

        Raises:
            FileNotFoundError: File doesn't exist
            DatabaseError: Database operation failure
        """
        if not filepath.exists():
            raise FileNotFoundError(f"CSV file not found: {filepath}")

        content = decode_report(filepath.read_bytes())
        return self.import_trades(content, imported_by, scope=scope, filename=filepath.name)

    def import_trades(
        self,
        csv_content: str,
        imported_by: str,
        scope: ImportScope | None = None,
        filename: str | None = None,
    ) -> ImportResult:
        """Import trades from report text.

        Args:
            csv_content: Full text of the report
            imported_by: Identity starting the import
            scope: Profile/user to import into (default: resolved VIP scope)
            filename: Original filename, recorded in the audit log

        Returns:
            ImportResult with counts and issues

        Raises:
            DatabaseError: Database operation failure
        """
        start_time = datetime.now(timezone.utc)
        scope = scope or self.vip_config.resolve()
        logger.info(f"Importing {filename or 'CSV upload'} into profile {scope.profile_id}")

        try:
            parse_result = self.parser.parse(csv_content)
        except CSVParseError as e:
            logger.warning(f"Rejected report {filename or ''}: {e.message}")
            issues = [ImportIssue(type=ImportIssueType.PARSE, line_number=e.row_number, detail=e.message)]
            return self._failed_result(issues, [], [], imported_by, scope, filename, start_time)

        validation = validate_trades(parse_result.trades)
        issues = list(validation.issues)

        if not validation.valid:
            logger.warning("No valid trades found in CSV file")
            issues.insert(0, ImportIssue(type=ImportIssueType.NO_VALID_TRADES))
            return self._failed_result(
                issues, [], parse_result.skipped_lines, imported_by, scope, filename, start_time
            )

        try:
            with db_session() as session:
                duplicates = DuplicateChecker(session).partition(validation.valid, scope.profile_id)

                converter = TradeConverter(scope)
                imported_at = datetime.now()
                new_count = 0
                failure_count = 0
                consecutive_failures = 0
                aborted = False

                for row in duplicates.new_rows:
                    try:
                        self._save_trade(session, converter, row, imported_at)
                        new_count += 1
                        consecutive_failures = 0  # Reset on success
                    except SQLAlchemyError as e:
                        failure_count += 1
                        consecutive_failures += 1
                        detail = str(getattr(e, "orig", None) or e)
                        logger.error(f"Failed to save trade {row.ticket}: {detail}")
                        issues.append(
                            ImportIssue(
                                type=ImportIssueType.PERSISTENCE,
                                line_number=row.line_number,
                                ticket=row.ticket,
                                detail=detail,
                            )
                        )

                        # Circuit breaker: stop hammering a failing database
                        if consecutive_failures >= MAX_CONSECUTIVE_SAVE_FAILURES:
                            logger.error(
                                f"Aborting import: {MAX_CONSECUTIVE_SAVE_FAILURES} "
                                "consecutive save failures"
                            )
                            aborted = True
                            break

                    if new_count and new_count % 50 == 0:
                        logger.info(f"Progress: {new_count}/{len(duplicates.new_rows)} trades saved")

                # Saved trades survive a failing audit-log write
                session.commit()

                status = self._determine_status(new_count, failure_count)
                log = self._build_audit_log(
                    status=status,
                    trades_count=len(validation.valid),
                    new_trades=new_count,
                    skipped_trades=len(duplicates.duplicate_rows),
                    issues=issues,
                    imported_by=imported_by,
                    scope=scope,
                    filename=filename,
                    start_time=start_time,
                )
                session.add(log)
                session.flush()
                log_id = log.id

        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during import: {e}") from e

        logger.info(
            f"Import {log_id} finished ({status.value}): {new_count} new, "
            f"{len(duplicates.duplicate_rows)} duplicates, {len(issues)} issues"
        )

        return ImportResult(
            success=failure_count == 0,
            status=status,
            new_trades=new_count,
            updated_trades=0,
            skipped_trades=len(duplicates.duplicate_rows),
            issues=issues,
            trades=validation.valid,
            audit_log_id=log_id,
            skipped_lines=parse_result.skipped_lines,
            aborted=aborted,
        )

    def _save_trade(
        self,
        session: Session,
        converter: TradeConverter,
        row: ParsedTradeRow,
        imported_at: datetime,
    ) -> Trade:
        """Persist one trade inside a savepoint so a failure only loses this row."""
        trade = converter.convert(row, imported_at)
        with session.begin_nested():
            session.add(trade)
            session.flush()
        logger.debug(f"Saved trade {row.ticket} {trade.pair} profit={trade.profit}")
        return trade

    @staticmethod
    def _determine_status(new_count: int, failure_count: int) -> ImportStatus:
        if failure_count == 0:
            return ImportStatus.SUCCESS
        if new_count == 0:
            return ImportStatus.FAILED
        return ImportStatus.PARTIAL

    @staticmethod
    def _build_audit_log(
        status: ImportStatus,
        trades_count: int,
        new_trades: int,
        skipped_trades: int,
        issues: list[ImportIssue],
        imported_by: str,
        scope: ImportScope,
        filename: str | None,
        start_time: datetime,
    ) -> ImportAuditLog:
        completed_at = datetime.now(timezone.utc)
        log = ImportAuditLog(
            method=ImportMethod.MANUAL,
            imported_at=completed_at,
            trades_count=trades_count,
            new_trades=new_trades,
            updated_trades=0,
            skipped_trades=skipped_trades,
            imported_by=imported_by,
            filename=filename,
            profile_id=scope.profile_id,
            status=status,
            duration_seconds=(completed_at - start_time).total_seconds(),
        )
        log.issues = [issue.to_record() for issue in issues]
        return log

    def _failed_result(
        self,
        issues: list[ImportIssue],
        trades: list[ParsedTradeRow],
        skipped_lines: list[SkippedLine],
        imported_by: str,
        scope: ImportScope,
        filename: str | None,
        start_time: datetime,
    ) -> ImportResult:
        """Record a run that imported nothing and build its result."""
        try:
            with db_session() as session:
                log = self._build_audit_log(
                    status=ImportStatus.FAILED,
                    trades_count=0,
                    new_trades=0,
                    skipped_trades=0,
                    issues=issues,
                    imported_by=imported_by,
                    scope=scope,
                    filename=filename,
                    start_time=start_time,
                )
                session.add(log)
                session.flush()
                log_id = log.id
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error while recording import: {e}") from e

        return ImportResult(
            success=False,
            status=ImportStatus.FAILED,
            new_trades=0,
            updated_trades=0,
            skipped_trades=0,
            issues=issues,
            trades=trades,
            audit_log_id=log_id,
            skipped_lines=skipped_lines,
        )

    def get_import_history(self, limit: int = 10) -> list[ImportLogInfo]:
        """Get recent import history.

        Args:
            limit: Maximum number of runs to return

        Returns:
            List of ImportLogInfo ordered by imported_at DESC
        """
        with db_session() as session:
            stmt = (
                select(ImportAuditLog)
                .order_by(ImportAuditLog.imported_at.desc(), ImportAuditLog.id.desc())
                .limit(limit)
            )
            logs = session.execute(stmt).scalars().all()

            return [
                ImportLogInfo(
                    log_id=log.id,
                    imported_at=log.imported_at,
                    method=log.method.value,
                    filename=log.filename,
                    imported_by=log.imported_by,
                    profile_id=log.profile_id,
                    trades_count=log.trades_count,
                    new_trades=log.new_trades,
                    updated_trades=log.updated_trades,
                    skipped_trades=log.skipped_trades,
                    error_count=len(log.issues),
                    status=log.status.value,
                    duration=float(log.duration_seconds) if log.duration_seconds else 0.0,
                )
                for log in logs
            ]

    def get_import_issues(self, log_id: int) -> list[ImportIssue]:
        """Get the issues recorded for one import run.

        Raises:
            ImportLogNotFoundError: log_id doesn't exist
        """
        with db_session() as session:
            if session.get(ImportAuditLog, log_id) is None:
                raise ImportLogNotFoundError(log_id)

            stmt = (
                select(ImportIssueRecord)
                .where(ImportIssueRecord.log_id == log_id)
                .order_by(ImportIssueRecord.id)
            )
            return [record.to_issue() for record in session.execute(stmt).scalars()]

    def get_vip_stats(self, profile_id: Optional[str] = None) -> VipStats:
        """Compute performance statistics for a VIP profile.

        Only closed trades (CLOSED, LOSS, BREAKEVEN) from manual or imported
        sources are counted.

        Args:
            profile_id: Profile to summarize (default: resolved VIP profile)

        Returns:
            VipStats; all zeros when the profile has no closed trades
        """
        profile_id = profile_id or self.vip_config.resolve().profile_id

        with db_session() as session:
            stmt = select(Trade.result).where(
                Trade.profile_id == profile_id,
                Trade.source.in_(VIP_STATS_SOURCES),
                Trade.status.in_(CLOSED_STATUSES),
            )
            results = [float(value or 0) for value in session.execute(stmt).scalars()]

            last_import = session.execute(
                select(ImportAuditLog)
                .where(ImportAuditLog.profile_id == profile_id)
                .order_by(ImportAuditLog.imported_at.desc(), ImportAuditLog.id.desc())
                .limit(1)
            ).scalar_one_or_none()
            last_updated = last_import.imported_at if last_import else None
            sync_method = last_import.method.value if last_import else SYNC_METHOD_MANUAL

        df = pd.DataFrame({"result": results}, dtype="float64")
        wins = df.loc[df["result"] > 0, "result"]
        losses = df.loc[df["result"] < 0, "result"]

        total_trades = len(df)
        total_profit = float(df["result"].sum())
        starting_balance = (
            0.0 if total_trades == 0 else max(float(VIP_MIN_STARTING_BALANCE), abs(total_profit) * 2)
        )

        logger.debug(
            f"VIP stats for {profile_id}: {total_trades} closed trades, total profit {total_profit}"
        )

        return VipStats(
            total_trades=total_trades,
            winning_trades=len(wins),
            losing_trades=len(losses),
            total_profit=total_profit,
            win_rate=len(wins) / total_trades * 100 if total_trades else 0.0,
            average_win=float(wins.mean()) if len(wins) else 0.0,
            average_loss=float(losses.mean()) if len(losses) else 0.0,
            best_trade=float(df["result"].max()) if total_trades else 0.0,
            worst_trade=float(df["result"].min()) if total_trades else 0.0,
            starting_balance=starting_balance,
            current_balance=starting_balance + total_profit,
            last_updated=last_updated,
            sync_method=sync_method,
        )
