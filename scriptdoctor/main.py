"""Script Doctor CLI - find and safely remove dead JS/TS code."""
import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from scriptdoctor.analyzer.aggregator import AnalysisReport, analyze_project
from scriptdoctor.analyzer.issues import IssueKind
from scriptdoctor.config import __version__, get_config
from scriptdoctor.errors import BackupCreationError
from scriptdoctor.reaper.backup import BackupManager
from scriptdoctor.reaper.report import SurgeryReport
from scriptdoctor.reaper.surgery import SafeCodeSurgeon
from scriptdoctor.utils.file_system import DEFAULT_IGNORE, DEFAULT_SOURCE_PATTERNS
from scriptdoctor.utils.safe_console import SafeConsole

app = typer.Typer(
    name="script-doctor",
    help="Find unused functions, unused imports, duplicate code and unreferenced IPC handlers in JS/TS projects",
    add_completion=False
)
console = SafeConsole(highlight=False)


def _display_path(path: str, root: Path) -> str:
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return str(path)


def _load_config():
    try:
        return get_config()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _resolve_project(project_path: str) -> Path:
    root = Path(project_path).resolve()
    if not root.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(root))}")
        raise typer.Exit(1)
    return root


def _analyze(root: Path, backup_dir: str, verbose: bool) -> AnalysisReport:
    config = _load_config()
    ignore = DEFAULT_IGNORE + (Path(backup_dir).name,)
    return asyncio.run(analyze_project(
        root,
        options=config.analysis_options(),
        verbose=verbose,
        patterns=DEFAULT_SOURCE_PATTERNS,
        ignore=ignore,
    ))


def _print_analysis(report: AnalysisReport, root: Path):
    summary = report.summary()
    console.print(f"[bold blue]Analyzed {summary['filesAnalyzed']} files[/bold blue] "
                  f"({summary['totalIssues']} issues)\n")

    symbols = report.of_kind(IssueKind.UNUSED_FUNCTION) + report.of_kind(IssueKind.UNUSED_IMPORT)
    if symbols:
        table = Table(title="Unused Symbols")
        table.add_column("Symbol", style="cyan")
        table.add_column("Kind", style="yellow")
        table.add_column("File", style="magenta", no_wrap=False)
        table.add_column("Line", style="green", justify="right")
        for issue in sorted(symbols, key=lambda i: (i.file, i.line)):
            table.add_row(issue.name, issue.symbol.kind.value,
                          _display_path(issue.file, root), str(issue.line))
        console.print(table)

    duplicates = report.of_kind(IssueKind.DUPLICATE_GROUP)
    if duplicates:
        table = Table(title="Duplicate Code")
        table.add_column("Copies", style="yellow", justify="right")
        table.add_column("Locations", style="magenta", no_wrap=False)
        table.add_column("Block", style="dim", no_wrap=False)
        for group in duplicates:
            locations = "\n".join(
                f"{_display_path(loc.file, root)}:{loc.start_line}-{loc.end_line}"
                for loc in group.locations
            )
            table.add_row(str(group.duplicate_count), locations,
                          escape(group.fingerprint.exemplar_text))
        console.print(table)

    handlers = report.of_kind(IssueKind.UNREFERENCED_HANDLER)
    if handlers:
        table = Table(title="Unreferenced IPC Handlers")
        table.add_column("Channel", style="cyan")
        table.add_column("File", style="magenta", no_wrap=False)
        table.add_column("Line", style="green", justify="right")
        for issue in handlers:
            table.add_row(escape(issue.channel), _display_path(issue.file, root), str(issue.line))
        console.print(table)

    dead_code = report.of_kind(IssueKind.DEAD_CODE_PATH)
    if dead_code:
        table = Table(title="Unreachable Code")
        table.add_column("File", style="magenta", no_wrap=False)
        table.add_column("Line", style="green", justify="right")
        table.add_column("Reason", style="yellow")
        table.add_column("Code", style="dim", no_wrap=False)
        for issue in dead_code:
            table.add_row(_display_path(issue.file, root), str(issue.line),
                          issue.reason, escape(issue.code))
        console.print(table)

    complex_functions = report.of_kind(IssueKind.COMPLEX_FUNCTION)
    if complex_functions:
        table = Table(title="Complex Functions")
        table.add_column("Function", style="cyan")
        table.add_column("Complexity", style="red", justify="right")
        table.add_column("File", style="magenta", no_wrap=False)
        table.add_column("Line", style="green", justify="right")
        for issue in sorted(complex_functions, key=lambda i: -i.complexity):
            table.add_row(escape(issue.name), str(issue.complexity),
                          _display_path(issue.file, root), str(issue.line))
        console.print(table)

    if report.parse_errors:
        console.print(f"[yellow]⚠ {len(report.parse_errors)} file(s) skipped due to parse errors[/yellow]")
        for failure in report.parse_errors:
            console.print(f"  • {escape(_display_path(failure.file, root))}: {escape(failure.message)}")

    if not report.issues:
        console.print("[bold green]✓ No issues found.[/bold green]")

    for recommendation in report.recommendations():
        fix = ", auto-fixable" if recommendation["autoFixable"] else ""
        console.print(f"• {escape(recommendation['message'])} ({recommendation['priority']} priority{fix})")


def _print_surgery(report: SurgeryReport, root: Path):
    data = report.to_dict()
    summary = data["summary"]
    style = "green" if report.success else "red"

    table = Table(title=f"Surgery Report ({report.mode})", show_header=True, header_style="bold cyan")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Outcome", style="yellow")
    table.add_column("Detail", no_wrap=False)
    for outcome in data["files"]:
        if outcome["status"] == "committed":
            detail = f"{outcome['nodesRemoved']} removed, {outcome['linesRemoved']} lines"
        else:
            detail = outcome.get("reason", "")
        table.add_row(_display_path(outcome["file"], root), outcome["status"], detail)
    if data["files"]:
        console.print(table)

    console.print(Panel(
        f"Files analyzed: {summary['totalFiles']}\n"
        f"Modified: {summary['successfullyModified']}\n"
        f"Skipped (parse errors): {summary['skippedDueToErrors']}\n"
        f"Syntax errors prevented: {summary['syntaxErrorsPrevented']}\n"
        f"Safety score: {summary['safetyScore']}/100",
        title=f"[bold {style}]{'✅ Success' if report.success else '❌ Failed'}[/bold {style}]",
    ))
    if report.backup:
        console.print(f"💾 Backup: {escape(report.backup['location'])}")
    for warning in report.warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")
    for recommendation in report.recommendations():
        console.print(escape(recommendation))


@app.command()
def audit(
    project_path: str = typer.Argument(".", help="Project root path to analyze"),
    json_output: bool = typer.Option(False, "--json", help="Print the analysis as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print progress details"),
):
    """Scan project and list unused code, duplicates and unreferenced handlers."""
    root = _resolve_project(project_path)
    config = _load_config()
    report = _analyze(root, config.backup_dir, verbose)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return
    _print_analysis(report, root)


@app.command()
def surgery(
    project_path: str = typer.Argument(".", help="Project root path to operate on"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without writing"),
    no_conservative: bool = typer.Option(False, "--no-conservative",
                                         help="Allow edits that remove a large share of a file"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t",
                                              help="Largest allowed line-reduction ratio (0.0-1.0)"),
    max_changes: Optional[int] = typer.Option(None, "--max-changes", help="Per-file change budget"),
    no_validate: bool = typer.Option(False, "--no-validate",
                                     help="Skip re-parsing edited files before writing (unsafe)"),
    backup: bool = typer.Option(True, "--backup/--no-backup", help="Back up sources before a live run"),
    operation: Optional[List[str]] = typer.Option(None, "--operation", "-o",
                                                  help="unused-imports and/or unused-functions"),
    json_output: bool = typer.Option(False, "--json", help="Print the surgery report as JSON"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print progress details"),
):
    """Remove unused functions and imports, validating every edited file."""
    root = _resolve_project(project_path)
    config = _load_config()
    try:
        options = config.surgery_options().with_overrides(
            dry_run=dry_run,
            conservative=False if no_conservative else None,
            conservative_threshold=threshold,
            max_changes_per_file=max_changes,
            validate_syntax=False if no_validate else None,
            backup=backup,
            operations=tuple(operation) if operation else None,
            verbose=verbose,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    analysis = _analyze(root, options.backup_dir, verbose)

    if not dry_run and not yes:
        if json_output:
            console.print("[bold red]Error:[/bold red] --json with a live run requires --yes")
            raise typer.Exit(1)
        fixable = len(analysis.of_kind(IssueKind.UNUSED_FUNCTION)) + len(analysis.of_kind(IssueKind.UNUSED_IMPORT))
        console.print(f"[bold yellow]{fixable} unused symbol(s) are candidates for removal.[/bold yellow]")
        typer.confirm("Modify files in place?", abort=True)

    surgeon = SafeCodeSurgeon(options, backup_manager=BackupManager(options.backup_dir))
    try:
        report = asyncio.run(surgeon.operate(root, analysis.issues))
    except BackupCreationError as e:
        console.print(f"[bold red]Backup failed, no files were touched:[/bold red] {escape(e.message)}")
        raise typer.Exit(2)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_surgery(report, root)

    if not report.success:
        raise typer.Exit(1)


@app.command()
def restore(
    backup_path: str = typer.Argument(..., help="Backup directory (backup-<timestamp>)"),
    project_root: Optional[str] = typer.Option(None, "--project-root",
                                               help="Restore into this directory instead of the recorded root"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Copy a backup's files back over the project."""
    if not yes:
        typer.confirm(f"Overwrite project files with {backup_path}?", abort=True)
    try:
        restored = BackupManager().restore(backup_path, project_root)
    except (ValueError, IOError) as e:
        console.print(f"[bold red]Restore failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    console.print(f"[bold green]✓ Restored {len(restored)} file(s)[/bold green]")


@app.command()
def version():
    """Print the Script Doctor version."""
    typer.echo(__version__)


@app.callback()
def main():
    """Script Doctor - safe dead-code surgery for JavaScript and TypeScript."""
    pass


if __name__ == "__main__":
    app()
