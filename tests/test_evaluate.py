"""Tests for classification and outcome building."""

import pytest

from vaapicheck.context import RunContext
from vaapicheck.models import SOURCE_BUILTIN, VARIES, FactStatus, ResolvedFact
from vaapicheck.rules.base import CheckDefinition, Classification, Severity
from vaapicheck.rules.evaluate import build_outcome, classify, evaluate

CRIT = Severity.CRITICAL
ADV = Severity.ADVISORY


def _set(name: str, value: str) -> ResolvedFact:
    return ResolvedFact(name, value, "environment", FactStatus.OK)


def _unset(name: str, **kwargs) -> ResolvedFact:
    return ResolvedFact(name, **kwargs)


def test_scenario_expected_value_is_ok():
    """Critical check with matching value classifies OK."""
    d = CheckDefinition("X", "direct", CRIT, None)
    assert classify(d, _set("X", "direct")) == Classification.OK


def test_scenario_critical_mismatch_fails_and_counts():
    """Critical mismatch is FAIL and bumps the issue counter by one."""
    d = CheckDefinition("X", "direct", CRIT, None)
    ctx = RunContext()
    out = evaluate("S", d, _set("X", "egl"), ctx)
    assert out.classification == Classification.FAIL
    assert ctx.counters.issues == 1
    assert ctx.counters.warnings == 0
    assert "expected direct" in out.message


def test_scenario_varies_present_is_info_without_counting():
    """VARIES with a value is INFO and leaves counters alone."""
    d = CheckDefinition("NVD_GPU", VARIES, ADV, None)
    ctx = RunContext()
    out = evaluate("S", d, _set("NVD_GPU", "1"), ctx)
    assert out.classification == Classification.INFO
    assert (ctx.counters.issues, ctx.counters.warnings) == (0, 0)


@pytest.mark.parametrize("severity", [CRIT, ADV])
@pytest.mark.parametrize("fact", [_set("V", "anything"), _unset("V")])
def test_varies_never_ok_warn_or_fail(severity, fact):
    """VARIES is INFO whatever the value, severity or fallback."""
    d = CheckDefinition("V", VARIES, severity, "true")
    assert classify(d, fact) == Classification.INFO


def test_unset_critical_with_matching_fallback_is_builtin_ok():
    """Absent everywhere but the built-in default is correct."""
    d = CheckDefinition("media.rdd-process.enabled", "true", CRIT, "true")
    out = build_outcome("S", d, _unset(d.name))
    assert out.classification == Classification.OK
    assert out.display_source == SOURCE_BUILTIN
    assert "built-in default true is correct" in out.message


def test_unset_critical_with_wrong_fallback_warns():
    d = CheckDefinition("widget.dmabuf.force-enabled", "true", CRIT, "false")
    out = build_outcome("S", d, _unset(d.name))
    assert out.classification == Classification.WARN
    assert out.display_value == "(default: false)"


def test_unset_critical_with_unknown_fallback_warns():
    d = CheckDefinition("LIBVA_DRIVER_NAME", "nvidia", CRIT, None)
    out = build_outcome("S", d, _unset(d.name))
    assert out.classification == Classification.WARN
    assert "default: unknown" in out.message


def test_unset_advisory_is_info():
    d = CheckDefinition("GST_VAAPI_ALL_DRIVERS", "1", ADV, None)
    assert classify(d, _unset(d.name)) == Classification.INFO


def test_advisory_mismatch_warns():
    d = CheckDefinition("gfx.webrender.all", "true", ADV, "false")
    assert classify(d, _set(d.name, "false")) == Classification.WARN


def test_not_applicable_is_info_even_when_wrong():
    """Inapplicable settings never count, whatever their value."""
    d = CheckDefinition("MOZ_X11_EGL", "1", CRIT, None)
    ctx = RunContext()
    out = evaluate("S", d, _set(d.name, "0"), ctx, applicable=False, label="X11 only")
    assert out.classification == Classification.INFO
    assert out.display_value == "(X11 only)"
    assert out.display_source == "N/A"
    assert ctx.counters.warnings == 0


def test_classification_is_deterministic():
    d = CheckDefinition("NVD_BACKEND", "direct", CRIT, None)
    fact = _set(d.name, "egl")
    assert {classify(d, fact) for _ in range(5)} == {Classification.FAIL}


def test_persisted_but_inactive_hint_asks_for_relogin():
    """A file-only value is still unset, but the hint differs from an unconfigured one."""
    d = CheckDefinition("NVD_BACKEND", "direct", CRIT, None, hint="Add NVD_BACKEND=direct")
    configured = build_outcome("S", d, _unset(d.name, persisted_value="direct",
                                              persisted_source="/etc/environment"))
    missing = build_outcome("S", d, _unset(d.name))
    assert configured.classification == missing.classification == Classification.WARN
    assert "Log out and back in" in configured.hint
    assert "/etc/environment" in configured.message
    assert missing.hint == "Add NVD_BACKEND=direct"


def test_denied_status_noted_in_hint():
    d = CheckDefinition("nvidia-drm.modeset", "1", CRIT, None)
    out = build_outcome("S", d, _unset(d.name, status=FactStatus.DENIED))
    assert "permission denied" in out.hint
