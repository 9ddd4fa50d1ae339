"""CLI interface for ntcleaner."""

import logging
import threading
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from ntcleaner import __version__
from ntcleaner.categories import get_categories_by_risk, get_category
from ntcleaner.display import (
    confirm_action,
    console,
    show_accounts,
    show_categories,
    show_options,
    show_run_summary,
    show_stats,
    show_task,
    show_tasks,
)
from ntcleaner.host import CleanerSession, HostEnvironment
from ntcleaner.models import Frequency, RiskLevel
from ntcleaner.service import TaskNotFoundError
from ntcleaner.settings import Settings, parse_account_pairs

# Create Typer app
app = typer.Typer(
    name="ntcleaner",
    help="Retention-based cache cleaner for NT chat client data directories",
    add_completion=False,
)
config_app = typer.Typer(help="Show or change the default clean options.")
schedule_app = typer.Typer(help="Manage scheduled cleans.")
app.add_typer(config_app, name="config")
app.add_typer(schedule_app, name="schedule")


def setup_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ntcleaner version {__version__}")
        raise typer.Exit()


def _session(ctx: typer.Context) -> CleanerSession:
    """Build (once) the session for this invocation."""
    obj = ctx.ensure_object(dict)
    if "session" not in obj:
        settings: Settings = obj["settings"]
        host = HostEnvironment(
            data_path=settings.data_path,
            config_path=settings.config_path,
            self_uin=settings.self_uin,
            login_list=(lambda: settings.accounts) if settings.accounts else None,
            layout=settings.layout,
        )
        obj["session"] = CleanerSession(host).prepare()
    return obj["session"]


def _option_overrides(
    enable: Optional[list[str]],
    disable: Optional[list[str]],
    retain_days: Optional[int],
) -> dict[str, Any]:
    """Turn --enable/--disable/--retain-days into a partial CleanOptions dict."""
    overrides: dict[str, Any] = {}
    for names, flag in ((enable or [], True), (disable or [], False)):
        for name in names:
            category = get_category(name)
            if category is None:
                raise typer.BadParameter(f"Unknown category: {name}")
            overrides[category.option_field] = flag
    if retain_days is not None:
        overrides["retain_days"] = retain_days
    return overrides


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    data_path: Optional[Path] = typer.Option(None, "--data-path", "-d", help="Base data directory."),
    config_path: Optional[Path] = typer.Option(None, "--config-path", help="Task/options JSON file."),
    layout: Optional[str] = typer.Option(None, "--layout", help="auto, windows or linux."),
    uin: Optional[str] = typer.Option(None, "--uin", help="The current account."),
    account: Optional[list[str]] = typer.Option(
        None, "--account", "-a", help="Known account as UIN:UID (repeatable)."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """ntcleaner - clean stale chat client caches on a schedule."""
    try:
        settings = Settings.from_env(
            data_path=data_path,
            config_path=config_path,
            layout=layout,
            self_uin=uin,
            accounts=parse_account_pairs(account) if account else None,
            log_level=log_level,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid settings: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(2)

    setup_logging(settings.log_level)
    ctx.ensure_object(dict)["settings"] = settings

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


@app.command()
def accounts(ctx: typer.Context) -> None:
    """List accounts with their total cache size."""
    show_accounts(_session(ctx).service.list_accounts())


@app.command()
def stats(
    ctx: typer.Context,
    uin: str = typer.Argument(..., help="Account to inspect"),
    retain_days: int = typer.Option(
        0, "--retain-days", "-r", help="Also estimate what a clean keeping N days would free"
    ),
) -> None:
    """Show per-category cache usage for one account."""
    show_stats(_session(ctx).service.get_account_stats(uin, retain_days))


@app.command()
def clean(
    ctx: typer.Context,
    uins: Optional[list[str]] = typer.Argument(None, help="Accounts to clean (default: current)"),
    all_accounts: bool = typer.Option(False, "--all", help="Clean every known account"),
    retain_days: Optional[int] = typer.Option(None, "--retain-days", "-r", help="Keep files newer than N days"),
    enable: Optional[list[str]] = typer.Option(None, "--enable", "-e", help="Enable a category"),
    disable: Optional[list[str]] = typer.Option(None, "--disable", "-x", help="Disable a category"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """Delete stale cache files now."""
    service = _session(ctx).service
    overrides = _option_overrides(enable, disable, retain_days)
    targets = [] if all_accounts else (uins or None)

    if targets is None and not service.self_uin:
        console.print("[red]Error: Specify accounts, --all, or --uin[/red]")
        raise typer.Exit(1)

    show_options(service.resolve_options(overrides), title="Clean Options")
    if not yes:
        if not confirm_action("Proceed with cleanup?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    show_run_summary(service.clean(targets, overrides))


@app.command(name="categories")
def list_categories(
    risk: Optional[RiskLevel] = typer.Option(None, "--risk", help="Only show safe, review or risky categories"),
) -> None:
    """List cache categories."""
    show_categories(get_categories_by_risk(risk) if risk else None)


@app.command()
def daemon(ctx: typer.Context) -> None:
    """Run scheduled tasks until interrupted."""
    session = _session(ctx).start()
    show_tasks(session.service.list_tasks(), _task_states(session))
    console.print("[dim]Scheduler running. Press Ctrl+C to stop.[/dim]")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        console.print("\n[dim]Stopping...[/dim]")
    finally:
        session.stop()


# =============================================================================
# config
# =============================================================================


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the default clean options."""
    session = _session(ctx)
    console.print(f"[dim]Config file: {session.store.path}[/dim]")
    show_options(session.service.get_config().default_options)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    retain_days: Optional[int] = typer.Option(None, "--retain-days", "-r", help="Keep files newer than N days"),
    enable: Optional[list[str]] = typer.Option(None, "--enable", "-e", help="Enable a category"),
    disable: Optional[list[str]] = typer.Option(None, "--disable", "-x", help="Disable a category"),
) -> None:
    """Change the default clean options."""
    overrides = _option_overrides(enable, disable, retain_days)
    if not overrides:
        console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(0)

    options = _session(ctx).service.set_default_options(overrides)
    console.print("[green]Default options saved[/green]")
    show_options(options)


# =============================================================================
# schedule
# =============================================================================


def _task_states(session: CleanerSession) -> dict:
    return {task.id: session.scheduler.state(task.id) for task in session.store.tasks}


def _task_fields(
    name: Optional[str],
    hour: Optional[int],
    minute: Optional[int],
    frequency: Optional[Frequency],
    value: Optional[int],
    accounts: Optional[list[str]],
    enabled: Optional[bool],
) -> dict[str, Any]:
    fields = {
        "name": name,
        "cron_hour": hour,
        "cron_minute": minute,
        "frequency": frequency.value if frequency else None,
        "frequency_value": value,
        "accounts": accounts or None,
        "enabled": enabled,
    }
    return {key: val for key, val in fields.items() if val is not None}


@schedule_app.command("list")
def schedule_list(ctx: typer.Context) -> None:
    """List scheduled tasks."""
    session = _session(ctx)
    show_tasks(session.service.list_tasks(), _task_states(session))


@schedule_app.command("add")
def schedule_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Task name"),
    hour: int = typer.Option(3, "--hour", help="Hour of day (0-23)"),
    minute: int = typer.Option(0, "--minute", help="Minute (0-59)"),
    frequency: Frequency = typer.Option(Frequency.DAILY, "--frequency", "-f", help="daily, weekly or interval"),
    value: int = typer.Option(0, "--value", help="Weekday 0-6 (Sunday=0) or interval days"),
    accounts: Optional[list[str]] = typer.Option(None, "--account", "-a", help="Target account (default: all)"),
    retain_days: Optional[int] = typer.Option(None, "--retain-days", "-r", help="Keep files newer than N days"),
    enable: Optional[list[str]] = typer.Option(None, "--enable", "-e", help="Enable a category"),
    disable: Optional[list[str]] = typer.Option(None, "--disable", "-x", help="Disable a category"),
    disabled: bool = typer.Option(False, "--disabled", help="Create the task disabled"),
) -> None:
    """Add a scheduled clean."""
    data = _task_fields(name, hour, minute, frequency, value, accounts, not disabled)
    data["options"] = _option_overrides(enable, disable, retain_days)

    task = _session(ctx).service.create_task(data)
    show_task(task, "Task added:")


@schedule_app.command("update")
def schedule_update(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
    name: Optional[str] = typer.Option(None, "--name", help="Task name"),
    hour: Optional[int] = typer.Option(None, "--hour", help="Hour of day (0-23)"),
    minute: Optional[int] = typer.Option(None, "--minute", help="Minute (0-59)"),
    frequency: Optional[Frequency] = typer.Option(None, "--frequency", "-f", help="daily, weekly or interval"),
    value: Optional[int] = typer.Option(None, "--value", help="Weekday 0-6 (Sunday=0) or interval days"),
    accounts: Optional[list[str]] = typer.Option(None, "--account", "-a", help="Target account"),
    retain_days: Optional[int] = typer.Option(None, "--retain-days", "-r", help="Keep files newer than N days"),
    enable: Optional[list[str]] = typer.Option(None, "--enable", "-e", help="Enable a category"),
    disable: Optional[list[str]] = typer.Option(None, "--disable", "-x", help="Disable a category"),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Turn the task on or off"),
) -> None:
    """Change a scheduled clean."""
    changes = _task_fields(name, hour, minute, frequency, value, accounts, enabled)
    options = _option_overrides(enable, disable, retain_days)
    if options:
        changes["options"] = options

    try:
        task = _session(ctx).service.update_task(task_id, changes)
    except TaskNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    show_task(task, "Task updated:")


@schedule_app.command("remove")
def schedule_remove(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
) -> None:
    """Delete a scheduled clean."""
    try:
        _session(ctx).service.delete_task(task_id)
    except TaskNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Task {task_id} removed[/green]")


@schedule_app.command("run")
def schedule_run(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
) -> None:
    """Run a scheduled clean immediately."""
    try:
        summary = _session(ctx).service.run_task(task_id)
    except TaskNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    show_run_summary(summary)


if __name__ == "__main__":
    app()
