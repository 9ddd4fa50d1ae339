"""Tests for display module."""

from datetime import datetime
from unittest.mock import patch

from ntcleaner.categories import get_categories_by_risk
from ntcleaner.display import (
    confirm_action,
    describe_schedule,
    risk_icon,
    risk_label,
    show_accounts,
    show_categories,
    show_options,
    show_run_summary,
    show_stats,
    show_task,
    show_tasks,
)
from ntcleaner.models import (
    AccountListing,
    AccountRunResult,
    AccountStatsReport,
    AccountSummary,
    CacheCategory,
    CleanOptions,
    CleanStats,
    Frequency,
    RiskLevel,
    RunSummary,
    ScheduleTask,
    TaskState,
)


def sample_stats() -> CleanStats:
    stats = CleanStats()
    stats.add(CacheCategory.VIDEO, 3, 3072)
    return stats


class TestRiskIcon:
    def test_safe_icon(self):
        icon = risk_icon(RiskLevel.SAFE)
        assert "✓" in icon
        assert "green" in icon

    def test_risky_icon(self):
        icon = risk_icon(RiskLevel.RISKY)
        assert "✗" in icon
        assert "red" in icon

    def test_unknown_icon(self):
        assert risk_icon("unknown") == "?"

    def test_labels(self):
        assert "Review" in risk_label(RiskLevel.REVIEW)
        assert risk_label("unknown") == "Unknown"


class TestDescribeSchedule:
    def test_daily(self):
        assert describe_schedule(ScheduleTask(id="t", cron_hour=4, cron_minute=5)) == "daily at 04:05"

    def test_weekly(self):
        task = ScheduleTask(id="t", frequency=Frequency.WEEKLY, frequency_value=3)
        assert describe_schedule(task) == "weekly on Wed at 03:00"

    def test_interval(self):
        task = ScheduleTask(id="t", frequency=Frequency.INTERVAL, frequency_value=5)
        assert describe_schedule(task) == "every 5 days at 03:00"


class TestShowFunctions:
    @patch("ntcleaner.display.console")
    def test_show_categories(self, mock_console):
        show_categories()
        mock_console.print.assert_called_once()

    @patch("ntcleaner.display.console")
    def test_show_categories_subset(self, mock_console):
        show_categories(get_categories_by_risk(RiskLevel.RISKY))
        table = mock_console.print.call_args.args[0]
        assert table.row_count == 1

    @patch("ntcleaner.display.console")
    def test_show_accounts_empty(self, mock_console):
        show_accounts(AccountListing(data_path="/data"))
        printed = " ".join(str(c.args[0]) for c in mock_console.print.call_args_list)
        assert "No accounts found" in printed

    @patch("ntcleaner.display.console")
    def test_show_accounts(self, mock_console):
        listing = AccountListing(
            data_path="/data",
            current_uin="111",
            accounts=[AccountSummary(uin="111", is_current=True, stats=sample_stats())],
        )
        show_accounts(listing)
        assert mock_console.print.call_count == 2

    @patch("ntcleaner.display.console")
    def test_show_stats_with_estimate(self, mock_console):
        report = AccountStatsReport(
            uin="111", retain_days=7, stats=sample_stats(), estimated_clean=sample_stats()
        )
        show_stats(report)
        table = mock_console.print.call_args[0][0]
        assert len(table.columns) == 4

    @patch("ntcleaner.display.console")
    def test_show_stats_without_estimate(self, mock_console):
        show_stats(AccountStatsReport(uin="111", stats=sample_stats()))
        table = mock_console.print.call_args[0][0]
        assert len(table.columns) == 3

    @patch("ntcleaner.display.console")
    def test_show_run_summary_with_failure(self, mock_console):
        summary = RunSummary(
            results=[
                AccountRunResult(uin="111", stats=sample_stats()),
                AccountRunResult(uin="222", error="boom"),
            ]
        )
        show_run_summary(summary)
        printed = " ".join(str(c.args[0]) for c in mock_console.print.call_args_list)
        assert "222: boom" in printed

    @patch("ntcleaner.display.console")
    def test_show_run_summary_nothing_cleaned(self, mock_console):
        show_run_summary(RunSummary(results=[AccountRunResult(uin="111", stats=CleanStats())]))
        printed = " ".join(str(c.args[0]) for c in mock_console.print.call_args_list)
        assert "nothing to clean" in printed

    @patch("ntcleaner.display.console")
    def test_show_options(self, mock_console):
        show_options(CleanOptions())
        table = mock_console.print.call_args[0][0]
        assert table.row_count == 11

    @patch("ntcleaner.display.console")
    def test_show_tasks_empty(self, mock_console):
        show_tasks([])
        assert "No scheduled tasks" in mock_console.print.call_args[0][0]

    @patch("ntcleaner.display.console")
    def test_show_tasks(self, mock_console):
        tasks = [
            ScheduleTask(id="a", name="On", last_run=datetime(2025, 6, 1, 3, 0), last_result="ok"),
            ScheduleTask(id="b", name="Off", enabled=False),
        ]
        show_tasks(tasks, {"a": TaskState.ARMED})
        table = mock_console.print.call_args[0][0]
        assert table.row_count == 2

    @patch("ntcleaner.display.console")
    def test_show_task(self, mock_console):
        show_task(ScheduleTask(id="a", name="Nightly"), "Task added:")
        first = mock_console.print.call_args_list[0][0][0]
        assert "Nightly" in first
        assert "(a)" in first


class TestConfirmAction:
    @patch("rich.prompt.Confirm.ask", return_value=True)
    def test_confirm(self, mock_ask):
        assert confirm_action("Proceed?") is True
        mock_ask.assert_called_once_with("Proceed?")
