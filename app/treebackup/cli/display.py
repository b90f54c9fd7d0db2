"""Rich display functions for backup progress and results.

Provides the per-action progress lines printed during a run and the
summary table printed after it.
"""

from rich.markup import escape
from rich.table import Table

from treebackup.backup.models import BackupAction, BackupEvent, BackupReport
from treebackup.utils.formatting import console, print_success

# Summary rows: action, label, style
_SUMMARY_ROWS: tuple[tuple[BackupAction, str, str], ...] = (
    (BackupAction.DIR, "Directories created", "created"),
    (BackupAction.DIR_EXISTS, "Directories existing", "muted"),
    (BackupAction.COPY, "Files copied", "copied"),
    (BackupAction.LINK, "Files linked", "linked"),
    (BackupAction.SYMLINK, "Symlinks stored", "info"),
    (BackupAction.IGNORED, "Ignored", "skipped"),
    (BackupAction.UNSUPPORTED, "Unsupported", "warning"),
)


def format_event(event: BackupEvent) -> str | None:
    """Format a backup event as a progress line with Rich markup.

    Existing directories and unsupported entries produce no line.

    Args:
        event: The event to format.

    Returns:
        Markup string, or None if the event is not shown.
    """
    if event.action == BackupAction.DIR:
        line = f"[created]DIR [/]  {escape(str(event.target))}"
    elif event.action == BackupAction.COPY:
        line = f"[copied]COPY[/]  {escape(str(event.target))}"
    elif event.action == BackupAction.LINK:
        line = f"[linked]LINK[/]  {escape(str(event.reference))}"
    elif event.action == BackupAction.SYMLINK:
        line = f"[info]SYM [/]  {escape(str(event.target))} -> {escape(event.link_target or '')}"
    elif event.action == BackupAction.IGNORED:
        line = f"[skipped]skip[/]  {escape(str(event.source))}"
    else:
        return None

    if event.dry_run:
        line = f"[muted](dry-run)[/] {line}"
    return line


def print_event(event: BackupEvent) -> None:
    """Print the progress line for an event, if it has one."""
    line = format_event(event)
    if line is not None:
        console.print(line, highlight=False, soft_wrap=True)


def create_report_table(report: BackupReport, dry_run: bool = False) -> Table:
    """Create a Rich table with per-action counts.

    Args:
        report: Report returned by the backup run.
        dry_run: Whether this was a dry-run (changes table title).

    Returns:
        Rich Table configured for summary display.
    """
    title = "Backup Summary (Dry Run)" if dry_run else "Backup Summary"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Action")
    table.add_column("Count", justify="right")

    for action, label, style in _SUMMARY_ROWS:
        count = report.count(action)
        if count:
            table.add_row(f"[{style}]{label}[/{style}]", str(count))

    return table


def print_report_summary(report: BackupReport, dry_run: bool = False) -> None:
    """Print the summary table and a closing message."""
    console.print(create_report_table(report, dry_run=dry_run))
    if dry_run:
        print_success(f"Dry-run complete: {report.total} entries visited, nothing written.")
    else:
        print_success(f"Backup complete: {report.total} entries visited.")
