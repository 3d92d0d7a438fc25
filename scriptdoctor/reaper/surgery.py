"""Orchestrate a surgery run over a finalized issue list."""
import asyncio
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from rich.markup import escape

from scriptdoctor.analyzer.aggregator import AnalysisReport, analyze_project
from scriptdoctor.analyzer.issues import Issue
from scriptdoctor.config import AnalysisOptions, SUPPORTED_OPERATIONS, SurgeryOptions
from scriptdoctor.utils.file_system import FileSystem
from scriptdoctor.utils.safe_console import diagnostics
from .backup import BackupInfo, BackupManager
from .outcomes import MutationOutcome, RollbackReason, RolledBack
from .report import SurgeryReport, fold
from .safe_mutator import SafeMutator, group_by_file


class BackupCollaborator(Protocol):
    def create_backup(self, project_root: str | Path) -> BackupInfo:
        ...


class SafeCodeSurgeon:
    """Apply safe mutations to every file named by the issues.

    A configured backup completes before the first transaction starts and
    a backup failure aborts the run. Transactions on the same path are
    serialized; different files run concurrently.
    """

    def __init__(self, options: Optional[SurgeryOptions] = None,
                 file_system: Optional[FileSystem] = None,
                 backup_manager: Optional[BackupCollaborator] = None):
        self.options = options or SurgeryOptions()
        self.file_system = file_system or FileSystem()
        self.backup_manager = backup_manager or BackupManager(self.options.backup_dir, self.file_system)
        self.mutator = SafeMutator(self.options, self.file_system)
        self._locks: Dict[str, asyncio.Lock] = {}

    def _unsupported_operations(self) -> List[str]:
        return [
            f"Operation '{op}' not supported in safe mode"
            for op in self.options.operations if op not in SUPPORTED_OPERATIONS
        ]

    async def operate(self, project_root: str | Path, issues: Iterable[Issue]) -> SurgeryReport:
        """Run one transaction per affected file and fold the outcomes.

        Args:
            project_root: Root handed to the backup collaborator
            issues: Finalized issue list; only unused functions and
                imports drive mutations

        Returns:
            SurgeryReport for the run

        Raises:
            BackupCreationError: If the pre-flight backup fails. No file
                has been touched when this is raised.
        """
        warnings = self._unsupported_operations()
        for warning in warnings:
            diagnostics.print(f"[yellow]⚠ {escape(warning)}[/yellow]")

        backup = None
        if self.options.backup and not self.options.dry_run:
            info = await asyncio.to_thread(self.backup_manager.create_backup, project_root)
            backup = info.to_dict()
            if self.options.verbose:
                diagnostics.print(f"💾 Backup created at {escape(str(info.location))}")

        groups = group_by_file(issues)
        outcomes = await asyncio.gather(*(
            self.transaction(path, file_issues) for path, file_issues in sorted(groups.items())
        ))
        return fold(outcomes, self.options, backup=backup, warnings=warnings)

    async def transaction(self, file_path: str | Path, issues: List[Issue]) -> MutationOutcome:
        """Run the safe mutator on one file under that file's lock.

        Unexpected exceptions become a RolledBack(internal_error) outcome,
        which marks the whole run as unsuccessful.
        """
        key = str(file_path)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            try:
                return await asyncio.to_thread(self.mutator.mutate, file_path, issues)
            except Exception as e:  # noqa: BLE001
                diagnostics.print(f"[red]❌ Internal error on {escape(key)}: {escape(str(e))}[/red]")
                return RolledBack(file=key, reason=RollbackReason.INTERNAL_ERROR,
                                  message=f"{type(e).__name__}: {e}")


async def run_surgery(project_root: str | Path, options: Optional[SurgeryOptions] = None,
                      file_system: Optional[FileSystem] = None,
                      backup_manager: Optional[BackupCollaborator] = None,
                      analysis_options: Optional[AnalysisOptions] = None,
                      analysis: Optional[AnalysisReport] = None) -> SurgeryReport:
    """Analyze a project (unless an analysis is given) and operate on it."""
    options = options or SurgeryOptions()
    file_system = file_system or FileSystem()
    if analysis is None:
        analysis = await analyze_project(project_root, file_system, analysis_options,
                                         verbose=options.verbose)
    surgeon = SafeCodeSurgeon(options, file_system, backup_manager)
    return await surgeon.operate(project_root, analysis.issues)
