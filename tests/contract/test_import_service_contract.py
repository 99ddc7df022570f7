"""Contract tests for ImportService.

These tests run the whole import pipeline against a temporary SQLite
database: parsing, validation, duplicate detection, persistence and the
audit log.

Run with: pytest -m contract tests/contract/test_import_service_contract.py
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from freezegun import freeze_time
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from fxjournal.lib.db import db_session
from fxjournal.lib.errors import ImportLogNotFoundError
from fxjournal.models import (
    ImportAuditLog,
    ImportIssueType,
    ImportStatus,
    Trade,
    TradeSide,
    TradeStatus,
)
from fxjournal.services.import_service import ImportService
from fxjournal.services.vip_config import ImportScope

STATEMENT_HEADER = "Ticket,Open Time,Type,Size,Item,Price,S/L,T/P,Close Time,Price,Commission,Swap,Profit"
SINGLE_TRADE_CSV = (
    f"{STATEMENT_HEADER}\n"
    "1001,2024.01.01 10:00,buy,0.10,EURUSD,1.10000,0,0,2024.01.01 12:00,1.10500,-2,0,50\n"
)

VIP = ImportScope(profile_id="vip-showcase", user_id="vip-trader")


def statement_rows(count, start=1):
    lines = [STATEMENT_HEADER]
    for i in range(start, start + count):
        lines.append(f"{i},2024.01.02 10:00,sell,0.10,GBPUSD,1.27,0,0,2024.01.02 11:00,1.26,0,0,{i}")
    return "\n".join(lines)


def fetch_trades(profile_id="vip-showcase"):
    with db_session() as session:
        trades = session.execute(select(Trade).where(Trade.profile_id == profile_id)).scalars().all()
        session.expunge_all()
        return trades


def fetch_log(log_id):
    with db_session() as session:
        log = session.get(ImportAuditLog, log_id)
        messages = log.error_messages
        session.expunge(log)
        return log, messages


def db_failure():
    return OperationalError("INSERT INTO trades", {}, Exception("disk I/O error"))


@pytest.fixture
def service():
    return ImportService()


@pytest.mark.contract
class TestImportServiceContract:
    """ImportService end-to-end behaviour."""

    def test_single_trade_end_to_end(self, service):
        result = service.import_trades(SINGLE_TRADE_CSV, "admin@example.com", scope=VIP)

        assert result.success is True
        assert result.status == ImportStatus.SUCCESS
        assert result.new_trades == 1
        assert result.skipped_trades == 0
        assert result.updated_trades == 0
        assert result.issues == []
        assert len(result.trades) == 1

        trades = fetch_trades()
        assert len(trades) == 1
        trade = trades[0]
        assert trade.pair == "EURUSD"
        assert trade.type == TradeSide.BUY
        assert trade.profit == Decimal("50")
        assert trade.pips == 500000
        assert trade.status == TradeStatus.CLOSED
        assert trade.source == "MT5_VIP"
        assert trade.user_id == "vip-trader"
        assert trade.mt5_commission == Decimal("-2")

        log, messages = fetch_log(result.audit_log_id)
        assert log.new_trades == 1
        assert log.skipped_trades == 0
        assert log.trades_count == 1
        assert log.status == ImportStatus.SUCCESS
        assert log.imported_by == "admin@example.com"
        assert log.profile_id == "vip-showcase"
        assert messages == []

    def test_reimport_is_idempotent(self, service):
        service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP)

        result = service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP)

        assert result.success is True
        assert result.new_trades == 0
        assert result.skipped_trades == 1
        assert len(fetch_trades()) == 1

        log, _ = fetch_log(result.audit_log_id)
        assert log.new_trades == 0
        assert log.skipped_trades == 1

    def test_duplicates_are_scoped_per_profile(self, service):
        service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP)

        result = service.import_trades(SINGLE_TRADE_CSV, "admin", scope=ImportScope("demo", "alice"))

        assert result.new_trades == 1
        assert result.skipped_trades == 0
        assert len(fetch_trades("demo")) == 1
        assert len(fetch_trades("vip-showcase")) == 1

    def test_repeated_ticket_within_upload(self, service):
        content = SINGLE_TRADE_CSV + SINGLE_TRADE_CSV.splitlines()[1] + "\n"

        result = service.import_trades(content, "admin", scope=VIP)

        assert result.new_trades == 1
        assert result.skipped_trades == 1
        assert result.success is True

    def test_footer_rows_never_become_trades(self, service, csv_dir):
        result = service.import_file(csv_dir / "report_history.csv", "admin", scope=VIP)

        assert result.new_trades == 3
        assert all(not t.mt5_ticket_id.startswith(("Total", "Profit")) for t in fetch_trades())

    def test_fixture_statement(self, service, csv_dir):
        result = service.import_file(csv_dir / "detailed_statement.csv", "admin", scope=VIP)

        assert result.new_trades == 3
        statuses = {t.mt5_ticket_id: t.status for t in fetch_trades()}
        assert statuses == {
            "1001": TradeStatus.CLOSED,
            "1002": TradeStatus.LOSS,
            "1003": TradeStatus.BREAKEVEN,
        }

        log, _ = fetch_log(result.audit_log_id)
        assert log.filename == "detailed_statement.csv"

    def test_validation_issues_do_not_block_valid_rows(self, service):
        content = (
            f"{STATEMENT_HEADER}\n"
            "1,2024.01.01 10:00,buy,0.10,EURUSD,1.1,0,0,2024.01.01 11:00,1.2,0,0,10\n"
            "2,2024.01.01 10:00,buy,0,EURUSD,1.1,0,0,2024.01.01 11:00,1.2,0,0,10\n"
        )

        result = service.import_trades(content, "admin", scope=VIP)

        assert result.success is True
        assert result.status == ImportStatus.SUCCESS
        assert result.new_trades == 1
        assert result.error_messages == ["Line 3 (2): Invalid volume"]

        log, messages = fetch_log(result.audit_log_id)
        assert messages == ["Line 3 (2): Invalid volume"]

    def test_zero_valid_rows_fails_and_is_audited(self, service, csv_dir):
        result = service.import_file(csv_dir / "invalid_rows.csv", "admin", scope=VIP)

        assert result.success is False
        assert result.status == ImportStatus.FAILED
        assert result.new_trades == 0
        assert result.trades == []
        assert result.issues[0].type == ImportIssueType.NO_VALID_TRADES
        assert result.error_messages == [
            "No valid trades found in CSV file",
            "Line 2 (2001): Invalid open time",
            "Line 3 (2002): Invalid volume, Invalid open price (negative)",
        ]
        assert fetch_trades() == []

        log, messages = fetch_log(result.audit_log_id)
        assert log.status == ImportStatus.FAILED
        assert log.trades_count == 0
        assert messages == result.error_messages

    def test_empty_report_fails_and_is_audited(self, service):
        result = service.import_trades("Ticket,Time\n", "admin", scope=VIP, filename="empty.csv")

        assert result.success is False
        assert result.issues[0].type == ImportIssueType.PARSE
        assert result.error_messages == ["CSV file appears to be empty or invalid"]

        log, _ = fetch_log(result.audit_log_id)
        assert log.status == ImportStatus.FAILED
        assert log.filename == "empty.csv"

    def test_single_save_failure_is_partial(self, service):
        original = ImportService._save_trade
        calls = []

        def fail_second(self, session, converter, row, imported_at):
            calls.append(row.ticket)
            if row.ticket == "2":
                raise db_failure()
            return original(self, session, converter, row, imported_at)

        with patch.object(ImportService, "_save_trade", fail_second):
            result = service.import_trades(statement_rows(3), "admin", scope=VIP)

        assert calls == ["1", "2", "3"]
        assert result.success is False
        assert result.status == ImportStatus.PARTIAL
        assert result.new_trades == 2
        assert result.error_messages == ["Failed to save trade 2: disk I/O error"]
        assert sorted(t.mt5_ticket_id for t in fetch_trades()) == ["1", "3"]

    def test_consecutive_save_failures_abort_the_run(self, service):
        with patch.object(ImportService, "_save_trade", side_effect=db_failure()) as save:
            result = service.import_trades(statement_rows(25), "admin", scope=VIP)

        assert save.call_count == 10
        assert result.aborted is True
        assert result.success is False
        assert result.status == ImportStatus.FAILED
        assert result.new_trades == 0
        assert len(result.issues) == 10
        assert all(i.type == ImportIssueType.PERSISTENCE for i in result.issues)

        log, messages = fetch_log(result.audit_log_id)
        assert log.status == ImportStatus.FAILED
        assert log.trades_count == 25
        assert len(messages) == 10

    def test_failure_counter_resets_after_success(self, service):
        original = ImportService._save_trade

        def fail_most(self, session, converter, row, imported_at):
            # Every tenth row succeeds, so no run of 10 failures
            if int(row.ticket) % 10 != 0:
                raise db_failure()
            return original(self, session, converter, row, imported_at)

        with patch.object(ImportService, "_save_trade", fail_most):
            result = service.import_trades(statement_rows(30), "admin", scope=VIP)

        assert result.aborted is False
        assert result.new_trades == 3
        assert result.status == ImportStatus.PARTIAL

    def test_unique_constraint_rejects_missed_duplicates(self, service):
        service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP)

        with patch(
            "fxjournal.services.duplicate_checker.DuplicateChecker._fetch_existing",
            side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
        ):
            result = service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP)

        assert result.new_trades == 0
        assert result.status == ImportStatus.FAILED
        assert result.issues[0].type == ImportIssueType.PERSISTENCE
        assert len(fetch_trades()) == 1

    def test_default_scope_comes_from_vip_config(self, service):
        service.vip_config.set_config("configured-vip", "coach")

        result = service.import_trades(SINGLE_TRADE_CSV, "admin")

        assert result.new_trades == 1
        trade = fetch_trades("configured-vip")[0]
        assert trade.user_id == "coach"

    def test_untokenizable_line_does_not_stop_import(self, service):
        content = SINGLE_TRADE_CSV + "9999," + "x" * 200_000 + "\n"

        result = service.import_trades(content, "admin", scope=VIP)

        assert result.success is True
        assert result.new_trades == 1
        assert [s.line_number for s in result.skipped_lines] == [3]

    def test_import_file_missing(self, service, tmp_path):
        with pytest.raises(FileNotFoundError):
            service.import_file(tmp_path / "missing.csv", "admin", scope=VIP)

    def test_import_file_utf16(self, service, tmp_path):
        path = tmp_path / "ReportHistory.csv"
        path.write_bytes(SINGLE_TRADE_CSV.encode("utf-16"))

        result = service.import_file(path, "admin", scope=VIP)

        assert result.new_trades == 1


@pytest.mark.contract
class TestImportHistoryContract:
    """Import history and issue lookups."""

    def test_history_newest_first(self, service):
        with freeze_time("2024-01-01 10:00:00"):
            first = service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP, filename="a.csv")
        with freeze_time("2024-01-02 10:00:00"):
            second = service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP, filename="b.csv")

        history = service.get_import_history(limit=10)

        assert [h.log_id for h in history] == [second.audit_log_id, first.audit_log_id]
        assert history[0].filename == "b.csv"
        assert history[0].skipped_trades == 1
        assert history[1].new_trades == 1
        assert history[0].status == "success"
        assert history[0].method == "manual"

    def test_history_limit(self, service):
        for _ in range(3):
            service.import_trades(SINGLE_TRADE_CSV, "admin", scope=VIP)

        assert len(service.get_import_history(limit=2)) == 2

    def test_history_empty(self, service):
        assert service.get_import_history() == []

    def test_get_import_issues(self, service, csv_dir):
        result = service.import_file(csv_dir / "invalid_rows.csv", "admin", scope=VIP)

        issues = service.get_import_issues(result.audit_log_id)

        assert issues == result.issues
        assert issues[2].line_number == 3
        assert issues[2].ticket == "2002"

    def test_get_import_issues_unknown_log(self, service):
        with pytest.raises(ImportLogNotFoundError, match="Import log not found: 999"):
            service.get_import_issues(999)


@pytest.mark.contract
class TestVipStatsContract:
    """VIP statistics over imported trades."""

    def test_no_trades(self, service):
        stats = service.get_vip_stats("vip-showcase")

        assert stats.total_trades == 0
        assert stats.starting_balance == 0
        assert stats.current_balance == 0
        assert stats.win_rate == 0
        assert stats.last_updated is None
        assert stats.sync_method == "manual"

    def test_stats_from_statement(self, service, csv_dir):
        service.import_file(csv_dir / "detailed_statement.csv", "admin", scope=VIP)

        stats = service.get_vip_stats("vip-showcase")

        # Profits: 50, -60, 0
        assert stats.total_trades == 3
        assert stats.winning_trades == 1
        assert stats.losing_trades == 1
        assert stats.total_profit == pytest.approx(-10.0)
        assert stats.win_rate == pytest.approx(100 / 3)
        assert stats.average_win == pytest.approx(50.0)
        assert stats.average_loss == pytest.approx(-60.0)
        assert stats.best_trade == pytest.approx(50.0)
        assert stats.worst_trade == pytest.approx(-60.0)
        assert stats.starting_balance == pytest.approx(10000.0)
        assert stats.current_balance == pytest.approx(9990.0)
        assert stats.last_updated is not None

    def test_large_profit_raises_starting_balance(self, service):
        content = (
            f"{STATEMENT_HEADER}\n"
            "1,2024.01.01 10:00,buy,1,XAUUSD,2000,0,0,2024.01.01 11:00,2100,0,0,8000\n"
        )
        service.import_trades(content, "admin", scope=VIP)

        stats = service.get_vip_stats("vip-showcase")

        assert stats.starting_balance == pytest.approx(16000.0)
        assert stats.current_balance == pytest.approx(24000.0)

    def test_open_trades_and_other_profiles_are_ignored(self, service):
        service.import_trades(SINGLE_TRADE_CSV, "admin", scope=ImportScope("demo", "alice"))
        with db_session() as session:
            trade = session.execute(select(Trade)).scalars().one()
            trade.status = TradeStatus.OPEN

        assert service.get_vip_stats("demo").total_trades == 0
        assert service.get_vip_stats("vip-showcase").total_trades == 0

    def test_defaults_to_resolved_profile(self, service):
        service.vip_config.set_config("configured-vip")
        service.import_trades(SINGLE_TRADE_CSV, "admin")

        assert service.get_vip_stats().total_trades == 1
