"""Integration tests for CLI workflows."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from fxjournal.cli import main
from fxjournal.lib.db import Base, get_engine
from fxjournal.services.import_service import ImportService


@pytest.fixture
def cli_runner():
    """Provide Click test runner."""
    return CliRunner()


@pytest.mark.integration
class TestImportWorkflow:
    """Import a report, then review it through history and errors."""

    def test_version(self, cli_runner):
        result = cli_runner.invoke(main, ["version"])

        assert result.exit_code == 0
        assert "fx-journal version 0.1.0" in result.output

    def test_import_history_and_errors(self, cli_runner, csv_dir):
        result = cli_runner.invoke(
            main, ["import", "csv", "-f", str(csv_dir / "detailed_statement.csv")]
        )

        assert result.exit_code == 0, result.output
        assert "Import Summary" in result.output
        assert "Status: success" in result.output

        # Second run only finds duplicates
        result = cli_runner.invoke(
            main, ["import", "csv", "-f", str(csv_dir / "detailed_statement.csv")]
        )
        assert "Status: success" in result.output

        history = ImportService().get_import_history()
        assert [h.new_trades for h in history] == [0, 3]
        assert [h.skipped_trades for h in history] == [3, 0]
        assert history[0].imported_by == "cli"

        result = cli_runner.invoke(main, ["import", "history", "-n", "5"])
        assert result.exit_code == 0
        assert "Import History" in result.output

        result = cli_runner.invoke(main, ["import", "errors", str(history[0].log_id)])
        assert result.exit_code == 0
        assert f"No issues in import {history[0].log_id}" in result.output

    def test_failed_import_points_to_errors(self, cli_runner, csv_dir):
        result = cli_runner.invoke(
            main,
            ["import", "csv", "-f", str(csv_dir / "invalid_rows.csv"), "--imported-by", "ops"],
        )

        assert result.exit_code == 0, result.output
        assert "Status: failed" in result.output
        assert "No valid trades found in CSV file" in result.output
        assert "fxjournal import errors" in result.output

        log_id = ImportService().get_import_history()[0].log_id
        result = cli_runner.invoke(main, ["import", "errors", str(log_id)])

        assert result.exit_code == 0
        assert f"Issues in Import {log_id}" in result.output

    def test_errors_for_unknown_log(self, cli_runner):
        result = cli_runner.invoke(main, ["import", "errors", "404"])

        assert result.exit_code != 0
        assert "Import log not found: 404" in result.output

    def test_history_empty(self, cli_runner):
        result = cli_runner.invoke(main, ["import", "history"])

        assert result.exit_code == 0
        assert "No import history found" in result.output

    def test_explicit_profile(self, cli_runner, csv_dir):
        result = cli_runner.invoke(
            main,
            [
                "import",
                "csv",
                "-f",
                str(csv_dir / "account_history.csv"),
                "--profile",
                "demo",
                "--user",
                "alice",
            ],
        )

        assert result.exit_code == 0, result.output
        assert ImportService().get_import_history()[0].profile_id == "demo"

    def test_profile_requires_user(self, cli_runner, csv_dir):
        result = cli_runner.invoke(
            main, ["import", "csv", "-f", str(csv_dir / "account_history.csv"), "--profile", "demo"]
        )

        assert result.exit_code == 2
        assert "--profile and --user must be given together" in result.output

    def test_rejects_non_csv_file(self, cli_runner, tmp_path):
        report = tmp_path / "report.xlsx"
        report.write_text("Ticket,Time\n")

        result = cli_runner.invoke(main, ["import", "csv", "-f", str(report)])

        assert result.exit_code == 2
        assert "Only CSV files are allowed" in result.output

    def test_rejects_symlink(self, cli_runner, csv_dir, tmp_path):
        link = tmp_path / "link.csv"
        link.symlink_to(csv_dir / "detailed_statement.csv")

        result = cli_runner.invoke(main, ["import", "csv", "-f", str(link)])

        assert result.exit_code == 2
        assert "Symlinks are not allowed" in result.output


@pytest.mark.integration
class TestVipWorkflow:
    """VIP configuration and statistics through the CLI."""

    def test_stats_without_trades(self, cli_runner):
        result = cli_runner.invoke(main, ["vip", "stats"])

        assert result.exit_code == 0
        assert "No closed VIP trades yet" in result.output

    def test_config_set_import_and_stats(self, cli_runner, csv_dir):
        result = cli_runner.invoke(main, ["vip", "config", "set", "showcase-2024", "--user", "coach"])
        assert result.exit_code == 0, result.output
        assert "VIP profile set to showcase-2024 (user: coach)" in result.output

        result = cli_runner.invoke(main, ["vip", "config", "show"])
        assert "showcase-2024" in result.output
        assert "coach" in result.output

        cli_runner.invoke(main, ["import", "csv", "-f", str(csv_dir / "detailed_statement.csv")])
        assert ImportService().get_import_history()[0].profile_id == "showcase-2024"

        result = cli_runner.invoke(main, ["vip", "stats"])
        assert result.exit_code == 0
        assert "VIP Performance" in result.output

    def test_config_set_rejects_blank_profile(self, cli_runner):
        result = cli_runner.invoke(main, ["vip", "config", "set", "  "])

        assert result.exit_code != 0
        assert "Profile ID cannot be empty" in result.output

    def test_config_clear_keeps_shared_document(self, cli_runner):
        cli_runner.invoke(main, ["vip", "config", "set", "showcase-2024"])

        result = cli_runner.invoke(main, ["vip", "config", "clear"])

        assert result.exit_code == 0
        # The shared document still names the profile
        assert "VIP profile is showcase-2024" in result.output

    def test_config_show_defaults(self, cli_runner):
        result = cli_runner.invoke(main, ["vip", "config", "show"])

        assert result.exit_code == 0
        assert "No shared config saved" in result.output

    def test_config_show_without_tables(self, cli_runner):
        Base.metadata.drop_all(bind=get_engine())

        result = cli_runner.invoke(main, ["vip", "config", "show"])

        assert result.exit_code == 0, result.output
        assert "Profile: vip-showcase" in result.output
        assert "Shared config unavailable" in result.output
        assert "No shared config saved" in result.output


@pytest.mark.integration
class TestInitCommand:
    """Database initialization."""

    def test_existing_database(self, cli_runner):
        result = cli_runner.invoke(main, ["init"])

        assert result.exit_code == 0
        assert "Database already exists" in result.output

    def test_reset_requires_confirmation(self, cli_runner):
        with patch("fxjournal.cli.init.reset_db") as reset:
            result = cli_runner.invoke(main, ["init", "--reset"], input="n\n")

        assert "Aborted." in result.output
        reset.assert_not_called()

    def test_reset_confirmed(self, cli_runner):
        with patch("fxjournal.cli.init.reset_db") as reset:
            result = cli_runner.invoke(main, ["init", "--reset"], input="y\n")

        assert result.exit_code == 0
        assert "Database reset successfully." in result.output
        reset.assert_called_once()
