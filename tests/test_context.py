"""Tests for run counters, source-conflict detection and the terminal verdict."""

from vaapicheck.conflicts import detect_conflicts
from vaapicheck.context import RunContext, RunCounters
from vaapicheck.format import VERDICT_CLEAN, VERDICT_ISSUES, VERDICT_WARNINGS, verdict
from vaapicheck.rules.base import Classification


def test_counters_match_emitted_classifications():
    """issues == #FAIL and warnings == #WARN for any mix of outcomes."""
    ctx = RunContext()
    sequence = [Classification.OK, Classification.FAIL, Classification.WARN, Classification.INFO,
                Classification.WARN, Classification.FAIL, Classification.WARN]
    for cls in sequence:
        ctx.flag("S", cls, "m")
    ctx.note("S", "plain text never counts")
    assert ctx.counters.issues == sequence.count(Classification.FAIL)
    assert ctx.counters.warnings == sequence.count(Classification.WARN)
    assert len(ctx.outcomes) == len(sequence)


def test_record_source_deduplicates():
    ctx = RunContext()
    ctx.record_source("NVD_BACKEND", "/etc/environment")
    ctx.record_source("NVD_BACKEND", "/etc/environment")
    assert ctx.sources == {"NVD_BACKEND": ["/etc/environment"]}


def test_identical_values_in_two_files_still_conflict():
    """System-wide and per-user assignment yields one WARN naming both paths."""
    record = {"NVD_BACKEND": ["/home/u/.profile", "/etc/environment"]}
    out = detect_conflicts(record, "ENV")
    assert len(out) == 1
    assert out[0].classification == Classification.WARN
    assert "/home/u/.profile" in out[0].hint and "/etc/environment" in out[0].hint


def test_single_source_is_not_a_conflict():
    assert detect_conflicts({"LIBVA_DRIVER_NAME": ["/etc/environment"]}, "ENV") == []


def test_verdict_warnings_only():
    """0 issues and 3 warnings is 'warnings only', never clean or issues."""
    assert verdict(RunCounters(issues=0, warnings=3)) == VERDICT_WARNINGS


def test_verdict_clean_and_issues():
    assert verdict(RunCounters()) == VERDICT_CLEAN
    assert verdict(RunCounters(issues=1)) == VERDICT_ISSUES
    assert verdict(RunCounters(issues=2, warnings=5)) == VERDICT_ISSUES
