"""Transactional removal of targeted symbols from a single file.

Each file runs through Parsed -> Planned -> Mutated -> Generated ->
conservative check -> Validated -> Committed. Every gate failure ends in
RolledBack or Skipped with the file untouched; NoOp means nothing
targeted was found. The file is written only on Committed, and only
outside dry-run mode, through an atomic replace.
"""
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from rich.markup import escape

from scriptdoctor.analyzer.issues import Issue, IssueKind, SymbolKind, UnusedSymbol
from scriptdoctor.analyzer.parser import LanguageParser
from scriptdoctor.config import (
    OPERATION_UNUSED_FUNCTIONS,
    OPERATION_UNUSED_IMPORTS,
    SurgeryOptions,
)
from scriptdoctor.errors import (
    ConservativeLimitExceeded,
    GenerationError,
    ParseError,
    ValidationError,
)
from scriptdoctor.utils.file_system import FileSystem
from scriptdoctor.utils.safe_console import diagnostics
from .outcomes import Committed, MutationOutcome, NoOp, RollbackReason, RolledBack, SkipReason, Skipped
from .removal_plan import RemovalPlanner, apply_edits

ISSUE_KINDS_BY_OPERATION = {
    OPERATION_UNUSED_FUNCTIONS: IssueKind.UNUSED_FUNCTION,
    OPERATION_UNUSED_IMPORTS: IssueKind.UNUSED_IMPORT,
}


def count_lines(text: str) -> int:
    """Line count as used by the conservative check: segments between '\\n'."""
    return len(text.split('\n'))


def reduction_ratio(lines_before: int, lines_after: int) -> float:
    if lines_before <= 0:
        return 0.0
    return (lines_before - lines_after) / lines_before


def plan_targets(issues: Iterable[Issue], budget: int,
                 operations: Iterable[str]) -> Dict[str, SymbolKind]:
    """Pick the target names for one file.

    Only unused-function / unused-import issues selected by operations
    are eligible. At most `budget` names are taken, in (line, name) order;
    the rest stay unplanned for a later run.
    """
    wanted = {ISSUE_KINDS_BY_OPERATION[op] for op in operations if op in ISSUE_KINDS_BY_OPERATION}
    eligible = sorted(
        (issue for issue in issues if isinstance(issue, UnusedSymbol) and issue.kind in wanted),
        key=lambda issue: (issue.line, issue.name),
    )
    targets: Dict[str, SymbolKind] = {}
    for issue in eligible:
        if len(targets) >= budget:
            break
        targets.setdefault(issue.name, issue.symbol.kind)
    return targets


class SafeMutator:
    """Run the per-file remove / regenerate / validate / commit cycle."""

    def __init__(self, options: Optional[SurgeryOptions] = None,
                 file_system: Optional[FileSystem] = None):
        """Initialize mutator.

        Args:
            options: Safety policy, defaults when omitted
            file_system: File access collaborator, disk by default
        """
        self.options = options or SurgeryOptions()
        self.file_system = file_system or FileSystem()

    def mutate(self, file_path: str | Path, issues: Iterable[Issue]) -> MutationOutcome:
        """Remove the symbols the issues name from one file.

        Args:
            file_path: File to operate on
            issues: Issues located in this file

        Returns:
            Committed, RolledBack, Skipped or NoOp
        """
        file_path = Path(file_path)
        name = str(file_path)

        # Parsed
        language = LanguageParser.language_for(file_path)
        try:
            if language is None:
                raise ParseError(f"Unsupported file type: {file_path.suffix}", file_path)
            try:
                original = self.file_system.read_file(file_path)
            except OSError as e:
                raise ParseError(f"Cannot read file: {e}", file_path) from e
            original_text = original.decode('utf-8')
            tree = LanguageParser(language).parse_source(original, file_path)
        except UnicodeDecodeError as e:
            return self._skipped(name, f"File is not valid UTF-8: {e}")
        except ParseError as e:
            return self._skipped(name, e.message)

        # Planned
        targets = plan_targets(issues, self.options.max_changes_per_file, self.options.operations)
        if not targets:
            return NoOp(file=name)

        # Mutated
        plan = RemovalPlanner(targets).plan(tree, original)
        if not plan.edits:
            return NoOp(file=name)

        try:
            # Generated
            generated_text = self._generate(original, plan.edits, file_path)

            # Conservative check. Lines are split on '\n', so a trailing
            # newline counts as an extra empty line: a newline-terminated
            # one-function file drops from 2 lines to 1 and is rolled back.
            lines_before = count_lines(original_text)
            lines_after = count_lines(generated_text)
            self._check_conservative(lines_before, lines_after, file_path)

            # Validated
            generated = generated_text.encode('utf-8')
            if self.options.validate_syntax:
                self._validate(generated, language, file_path)
        except GenerationError as e:
            return self._rolled_back(name, RollbackReason.GENERATION_ERROR, e.message)
        except ConservativeLimitExceeded as e:
            return self._rolled_back(name, RollbackReason.TOO_AGGRESSIVE, e.message)
        except ValidationError as e:
            return self._rolled_back(name, RollbackReason.SYNTAX_ERROR, e.message)

        # Committed
        if not self.options.dry_run:
            self.file_system.write_file_atomic(file_path, generated)
        if self.options.verbose:
            verb = "Would modify" if self.options.dry_run else "Modified"
            diagnostics.print(f"  ✅ {verb} {escape(name)} ({plan.nodes_removed} removed)")
        return Committed(
            file=name,
            lines_removed=lines_before - lines_after,
            nodes_removed=plan.nodes_removed,
            removed_names=tuple(plan.removed_names),
            dry_run=self.options.dry_run,
        )

    def _generate(self, original: bytes, edits, file_path: Path) -> str:
        generated = apply_edits(original, edits)
        try:
            return generated.decode('utf-8')
        except UnicodeDecodeError as e:
            raise GenerationError(f"Edits split a multi-byte character: {e}", file_path) from e

    def _check_conservative(self, lines_before: int, lines_after: int, file_path: Path):
        """Raise when the edit removes more than the configured share of lines.

        Raises:
            ConservativeLimitExceeded: In conservative mode, above threshold
        """
        ratio = reduction_ratio(lines_before, lines_after)
        threshold = self.options.conservative_threshold
        if self.options.conservative and ratio > threshold:
            raise ConservativeLimitExceeded(
                f"Too aggressive: {lines_before - lines_after} of {lines_before} lines "
                f"removed ({ratio:.0%} > {threshold:.0%})",
                ratio=ratio,
                threshold=threshold,
                file_path=file_path,
            )

    def _validate(self, generated: bytes, language: str, file_path: Path):
        """Re-parse generated text with a fresh parser.

        Raises:
            ValidationError: If the new text has syntax errors
        """
        try:
            LanguageParser(language).parse_source(generated, file_path)
        except ParseError as e:
            raise ValidationError(f"Syntax validation failed: {e.message}", file_path) from e

    def _skipped(self, name: str, message: str) -> Skipped:
        if self.options.verbose:
            diagnostics.print(f"  ⚠ Skipping {escape(name)} - {escape(message)}")
        return Skipped(file=name, reason=SkipReason.PARSE_ERROR, message=message)

    def _rolled_back(self, name: str, reason: RollbackReason, message: str) -> RolledBack:
        if self.options.verbose:
            diagnostics.print(f"  ↩ Rolled back {escape(name)} - {escape(message)}")
        return RolledBack(file=name, reason=reason, message=message)


def group_by_file(issues: Iterable[Issue]) -> Dict[str, List[Issue]]:
    """Group mutable issues by the file they live in, preserving order."""
    groups: Dict[str, List[Issue]] = {}
    for issue in issues:
        if isinstance(issue, UnusedSymbol):
            groups.setdefault(issue.file, []).append(issue)
    return groups
