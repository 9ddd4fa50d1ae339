"""Rich terminal display for ntcleaner."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ntcleaner.categories import CATEGORIES, get_all_categories
from ntcleaner.models import (
    AccountListing,
    AccountStatsReport,
    Category,
    CleanOptions,
    CleanStats,
    Frequency,
    RiskLevel,
    RunSummary,
    ScheduleTask,
    TaskState,
    format_size,
)

console = Console()

WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def risk_icon(risk_level: RiskLevel) -> str:
    """Get icon for risk level."""
    icons = {
        RiskLevel.SAFE: "[green]✓[/green]",
        RiskLevel.REVIEW: "[yellow]![/yellow]",
        RiskLevel.RISKY: "[red]✗[/red]",
    }
    return icons.get(risk_level, "?")


def risk_label(risk_level: RiskLevel) -> str:
    """Get styled label for risk level."""
    labels = {
        RiskLevel.SAFE: "[green]Safe[/green]",
        RiskLevel.REVIEW: "[yellow]Review[/yellow]",
        RiskLevel.RISKY: "[red]Risky[/red]",
    }
    return labels.get(risk_level, "Unknown")


def describe_schedule(task: ScheduleTask) -> str:
    """Human-readable recurrence, e.g. 'weekly on Wed at 03:00'."""
    at = f"{task.cron_hour:02d}:{task.cron_minute:02d}"
    if task.frequency == Frequency.WEEKLY:
        return f"weekly on {WEEKDAYS[task.frequency_value]} at {at}"
    if task.frequency == Frequency.INTERVAL:
        return f"every {task.frequency_value} days at {at}"
    return f"daily at {at}"


def show_categories(categories: list[Category] | None = None) -> None:
    """List cache categories (all of them by default)."""
    table = Table(title="Cache Categories", show_header=True, header_style="bold")
    table.add_column("", justify="center")
    table.add_column("Category", style="bold")
    table.add_column("Name")
    table.add_column("Risk")
    table.add_column("Location")

    for cat in get_all_categories() if categories is None else categories:
        location = cat.location + (" [dim](linux)[/dim]" if cat.linux_only else "")
        table.add_row(risk_icon(cat.risk_level), cat.id.value, cat.name, risk_label(cat.risk_level), location)

    console.print(table)


def show_accounts(listing: AccountListing) -> None:
    """Display accounts with their cache totals."""
    console.print(f"[dim]Data path: {listing.data_path}[/dim]")

    if not listing.accounts:
        console.print("[yellow]No accounts found.[/yellow]")
        return

    table = Table(title="Accounts", show_header=True, header_style="bold")
    table.add_column("Account", style="bold")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")

    for account in listing.accounts:
        name = account.uin + (" [green](current)[/green]" if account.is_current else "")
        table.add_row(name, str(account.stats.total_files), format_size(account.stats.total_size))

    console.print(table)


def show_stats(report: AccountStatsReport) -> None:
    """Display an account's per-category inventory and reclaimable estimate."""
    estimated = report.estimated_clean

    table = Table(title=f"Cache for {report.uin}", show_header=True, header_style="bold")
    table.add_column("Category")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")
    if estimated is not None:
        table.add_column(f"Older than {report.retain_days}d", justify="right", style="green")

    for category_id, cat in CATEGORIES.items():
        current = report.stats.get(category_id)
        row = [f"{risk_icon(cat.risk_level)} {cat.name}", str(current.files), format_size(current.size)]
        if estimated is not None:
            row.append(format_size(estimated.get(category_id).size))
        table.add_row(*row)

    total_row = ["[bold]Total[/bold]", str(report.stats.total_files), format_size(report.stats.total_size)]
    if estimated is not None:
        total_row.append(f"[bold]{format_size(estimated.total_size)}[/bold]")
    table.add_row(*total_row)

    console.print(table)


def show_clean_stats(uin: str, stats: CleanStats) -> None:
    """Display what was deleted for one account."""
    table = Table(title=f"Cleaned {uin}", show_header=True, header_style="bold green")
    table.add_column("Category")
    table.add_column("Files", justify="right")
    table.add_column("Freed", justify="right")

    for category_id, cat in CATEGORIES.items():
        entry = stats.get(category_id)
        if entry.files:
            table.add_row(cat.name, str(entry.files), format_size(entry.size))

    if stats.total_files:
        console.print(table)
    else:
        console.print(f"[dim]{uin}: nothing to clean[/dim]")


def show_run_summary(summary: RunSummary) -> None:
    """Display the results of a clean run."""
    for result in summary.results:
        if result.success and result.stats is not None:
            show_clean_stats(result.uin, result.stats)
        else:
            console.print(f"[red]✗ {result.uin}: {result.error}[/red]")

    color = "red" if summary.failed_accounts else "green"
    console.print(Panel(summary.summary, border_style=color))


def show_options(options: CleanOptions, title: str = "Default Options") -> None:
    """Display enable flags and the retention window."""
    table = Table(title=title, show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value", justify="right")

    for category_id, cat in CATEGORIES.items():
        enabled = options.is_enabled(category_id)
        table.add_row(cat.name, "[green]on[/green]" if enabled else "[dim]off[/dim]")
    table.add_row("Retain days", str(options.retain_days))

    console.print(table)


def show_tasks(tasks: list[ScheduleTask], states: dict[str, TaskState] | None = None) -> None:
    """Display scheduled tasks."""
    if not tasks:
        console.print("[yellow]No scheduled tasks.[/yellow]")
        return

    states = states or {}
    table = Table(title="Scheduled Tasks", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Accounts")
    table.add_column("Schedule")
    table.add_column("Keep", justify="right")
    table.add_column("State")
    table.add_column("Last run")
    table.add_column("Last result")

    for task in tasks:
        if not task.enabled:
            state = "[dim]disabled[/dim]"
        else:
            state = states.get(task.id, TaskState.IDLE).value
        table.add_row(
            task.id,
            task.name,
            ", ".join(task.accounts) or "all",
            describe_schedule(task),
            f"{task.options.retain_days}d",
            state,
            task.last_run.strftime("%Y-%m-%d %H:%M") if task.last_run else "-",
            task.last_result or "-",
        )

    console.print(table)


def show_task(task: ScheduleTask, message: str) -> None:
    """Display a single task after a change."""
    console.print(f"[green]{message}[/green] [bold]{task.name}[/bold] [dim]({task.id})[/dim]")
    console.print(f"  {describe_schedule(task)}, keeping {task.options.retain_days} days")


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
