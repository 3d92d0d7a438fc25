"""Tests for folding outcomes into the surgery report."""
from scriptdoctor.config import SurgeryOptions
from scriptdoctor.reaper.outcomes import (
    Committed,
    NoOp,
    RollbackReason,
    RolledBack,
    SkipReason,
    Skipped,
)
from scriptdoctor.reaper.report import POST_SURGERY_RECOMMENDATIONS, Statistics, fold, safety_score

OUTCOMES = [
    Committed(file='a.js', lines_removed=3, nodes_removed=2, removed_names=('x', 'y')),
    RolledBack(file='b.js', reason=RollbackReason.SYNTAX_ERROR, message="Syntax validation failed"),
    RolledBack(file='c.js', reason=RollbackReason.TOO_AGGRESSIVE, message="Too aggressive"),
    Skipped(file='d.js', reason=SkipReason.PARSE_ERROR, message="Syntax error at line 1, column 1"),
    NoOp(file='e.js'),
    RolledBack(file='f.js', reason=RollbackReason.GENERATION_ERROR, message="Conflicting edits"),
]


class TestSafetyScore:
    """Penalties for failures, bonuses for safety features, clamped to [0, 100]."""

    def test_clean_run_with_safety_on(self):
        assert safety_score(Statistics(), 0, SurgeryOptions()) == 100

    def test_penalties(self):
        stats = Statistics(syntax_errors=3)
        assert safety_score(stats, 3, SurgeryOptions()) == 100 - 30 - 6 + 20

    def test_no_bonuses(self):
        options = SurgeryOptions(validate_syntax=False, conservative=False)
        assert safety_score(Statistics(validations_failed=2), 0, options) == 90

    def test_dry_run_bonus(self):
        options = SurgeryOptions(dry_run=True, validate_syntax=False, conservative=False)
        assert safety_score(Statistics(modifications_failed=10), 0, options) == 70

    def test_clamped_at_zero(self):
        options = SurgeryOptions(validate_syntax=False, conservative=False)
        assert safety_score(Statistics(modifications_failed=30), 0, options) == 0


class TestFold:
    """Counters per outcome type and the serialized report."""

    def test_statistics(self):
        stats = fold(OUTCOMES, SurgeryOptions()).statistics
        assert stats == Statistics(
            files_analyzed=6,
            files_modified=1,
            files_skipped=1,
            syntax_errors=1,
            modifications_attempted=4,
            modifications_successful=1,
            modifications_failed=1,
            validations_failed=1,
            rejected_too_aggressive=1,
            nodes_removed=2,
            lines_removed=3,
        )

    def test_errors_exclude_too_aggressive(self):
        report = fold(OUTCOMES, SurgeryOptions())
        assert [(e["file"], e["type"]) for e in report.errors] == [
            ('b.js', 'syntax_error'),
            ('d.js', 'parse_error'),
            ('f.js', 'generation_error'),
        ]

    def test_order_independent(self):
        options = SurgeryOptions()
        assert fold(OUTCOMES, options).to_dict() == fold(list(reversed(OUTCOMES)), options).to_dict()

    def test_rollbacks_do_not_fail_the_run(self):
        assert fold(OUTCOMES, SurgeryOptions()).success

    def test_internal_error_fails_the_run(self):
        outcomes = OUTCOMES + [RolledBack(file='g.js', reason=RollbackReason.INTERNAL_ERROR,
                                          message="RuntimeError: boom")]
        report = fold(outcomes, SurgeryOptions())
        assert not report.success
        assert report.to_dict()["success"] is False

    def test_to_dict_shape(self):
        report = fold(OUTCOMES, SurgeryOptions(), backup={"location": "/b"}, warnings=["w"])
        data = report.to_dict()
        assert data["mode"] == "LIVE"
        assert data["safety"] == {"validateSyntax": True, "conservative": True, "maxChangesPerFile": 10}
        assert data["summary"] == {
            "totalFiles": 6,
            "successfullyModified": 1,
            "skippedDueToErrors": 1,
            "syntaxErrorsPrevented": 1,
            "safetyScore": 100 - 10 - 5 - 5 - 6 + 20,
        }
        assert data["backup"] == {"location": "/b"}
        assert data["warnings"] == ["w"]
        assert [f["file"] for f in data["files"]] == ['a.js', 'b.js', 'c.js', 'd.js', 'e.js', 'f.js']

    def test_recommendations_after_live_modifications(self):
        assert fold(OUTCOMES, SurgeryOptions()).recommendations() == list(POST_SURGERY_RECOMMENDATIONS)

    def test_no_recommendations_in_dry_run(self):
        data = fold(OUTCOMES, SurgeryOptions(dry_run=True)).to_dict()
        assert data["mode"] == "DRY_RUN"
        assert "recommendations" not in data
