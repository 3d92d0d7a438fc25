"""Fold mutation outcomes into run statistics and a safety score.

The fold is a sum of per-outcome counters, so it gives the same result
whatever order concurrent transactions finish in.
"""
from dataclasses import astuple, dataclass, field
from typing import Dict, Iterable, List, Optional

from scriptdoctor.config import SurgeryOptions
from .outcomes import Committed, MutationOutcome, NoOp, RollbackReason, RolledBack, Skipped

POST_SURGERY_RECOMMENDATIONS = (
    "🧪 Run your test suite immediately",
    "🔍 Review the changes in your version control system",
    "🏗️ Rebuild your project to ensure everything compiles",
    "💾 Keep the backup until you're certain everything works",
)


@dataclass(frozen=True)
class Statistics:
    files_analyzed: int = 0
    files_modified: int = 0
    files_skipped: int = 0
    syntax_errors: int = 0
    modifications_attempted: int = 0
    modifications_successful: int = 0
    modifications_failed: int = 0
    validations_failed: int = 0
    rejected_too_aggressive: int = 0
    nodes_removed: int = 0
    lines_removed: int = 0

    def __add__(self, other: 'Statistics') -> 'Statistics':
        return Statistics(*(a + b for a, b in zip(astuple(self), astuple(other))))

    def to_dict(self) -> Dict[str, int]:
        return {
            "filesAnalyzed": self.files_analyzed,
            "filesModified": self.files_modified,
            "filesSkipped": self.files_skipped,
            "syntaxErrors": self.syntax_errors,
            "modificationsAttempted": self.modifications_attempted,
            "modificationsSuccessful": self.modifications_successful,
            "modificationsFailed": self.modifications_failed,
            "validationsFailed": self.validations_failed,
            "rejectedTooAggressive": self.rejected_too_aggressive,
            "nodesRemoved": self.nodes_removed,
            "linesRemoved": self.lines_removed,
        }


def outcome_statistics(outcome: MutationOutcome) -> Statistics:
    """Counters contributed by a single outcome."""
    if isinstance(outcome, Committed):
        return Statistics(files_analyzed=1, files_modified=1, modifications_attempted=1,
                          modifications_successful=1, nodes_removed=outcome.nodes_removed,
                          lines_removed=outcome.lines_removed)
    if isinstance(outcome, Skipped):
        return Statistics(files_analyzed=1, files_skipped=1, syntax_errors=1)
    if isinstance(outcome, RolledBack):
        if outcome.reason is RollbackReason.SYNTAX_ERROR:
            return Statistics(files_analyzed=1, modifications_attempted=1, validations_failed=1)
        if outcome.reason is RollbackReason.TOO_AGGRESSIVE:
            return Statistics(files_analyzed=1, modifications_attempted=1,
                              rejected_too_aggressive=1)
        return Statistics(files_analyzed=1, modifications_attempted=1, modifications_failed=1)
    if isinstance(outcome, NoOp):
        return Statistics(files_analyzed=1)
    raise TypeError(f"Unknown mutation outcome: {outcome!r}")


def outcome_error(outcome: MutationOutcome) -> Optional[Dict[str, str]]:
    """The errors[] entry for an outcome, if it is an error."""
    if isinstance(outcome, Skipped):
        return {"file": outcome.file, "error": outcome.message, "type": outcome.reason.value}
    if isinstance(outcome, RolledBack) and outcome.reason is not RollbackReason.TOO_AGGRESSIVE:
        return {"file": outcome.file, "error": outcome.message, "type": outcome.reason.value}
    return None


def safety_score(statistics: Statistics, error_count: int, options: SurgeryOptions) -> int:
    """Score in [0, 100]: penalties for failures, bonuses for safety features."""
    score = 100
    score -= statistics.syntax_errors * 10
    score -= statistics.modifications_failed * 5
    score -= statistics.validations_failed * 5
    score -= error_count * 2

    if options.validate_syntax:
        score += 10
    if options.conservative:
        score += 10
    if options.dry_run:
        score += 20

    return max(0, min(100, score))


@dataclass(frozen=True)
class SurgeryReport:
    """Everything one surgery run reports back."""
    options: SurgeryOptions
    statistics: Statistics
    errors: List[Dict[str, str]] = field(default_factory=list)
    outcomes: List[MutationOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    backup: Optional[Dict] = None
    internal_errors: int = 0

    @property
    def success(self) -> bool:
        """False only when a transaction hit an unexpected internal error."""
        return self.internal_errors == 0

    @property
    def mode(self) -> str:
        return "DRY_RUN" if self.options.dry_run else "LIVE"

    @property
    def safety_score(self) -> int:
        return safety_score(self.statistics, len(self.errors), self.options)

    def recommendations(self) -> List[str]:
        if not self.options.dry_run and self.statistics.files_modified > 0:
            return list(POST_SURGERY_RECOMMENDATIONS)
        return []

    def to_dict(self) -> Dict:
        report = {
            "success": self.success,
            "mode": self.mode,
            "statistics": self.statistics.to_dict(),
            "errors": list(self.errors),
            "safety": {
                "validateSyntax": self.options.validate_syntax,
                "conservative": self.options.conservative,
                "maxChangesPerFile": self.options.max_changes_per_file,
            },
            "summary": {
                "totalFiles": self.statistics.files_analyzed,
                "successfullyModified": self.statistics.files_modified,
                "skippedDueToErrors": self.statistics.files_skipped,
                "syntaxErrorsPrevented": self.statistics.validations_failed,
                "safetyScore": self.safety_score,
            },
            "files": [outcome.to_dict() for outcome in self.outcomes],
            "backup": self.backup,
        }
        if self.warnings:
            report["warnings"] = list(self.warnings)
        recommendations = self.recommendations()
        if recommendations:
            report["recommendations"] = recommendations
        return report


def fold(outcomes: Iterable[MutationOutcome], options: SurgeryOptions,
         backup: Optional[Dict] = None, warnings: Iterable[str] = ()) -> SurgeryReport:
    """Reduce outcomes into a SurgeryReport.

    Args:
        outcomes: Per-file outcomes, in any order
        options: Policy the run used
        backup: Backup collaborator's result, embedded verbatim
        warnings: Non-error notes such as unsupported operations

    Returns:
        SurgeryReport with outcomes and errors sorted by file
    """
    ordered = sorted(outcomes, key=lambda outcome: outcome.file)
    statistics = Statistics()
    errors = []
    internal_errors = 0
    for outcome in ordered:
        statistics = statistics + outcome_statistics(outcome)
        error = outcome_error(outcome)
        if error is not None:
            errors.append(error)
        if isinstance(outcome, RolledBack) and outcome.reason is RollbackReason.INTERNAL_ERROR:
            internal_errors += 1
    return SurgeryReport(
        options=options,
        statistics=statistics,
        errors=errors,
        outcomes=ordered,
        warnings=list(warnings),
        backup=backup,
        internal_errors=internal_errors,
    )
