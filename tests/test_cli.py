"""Tests for the CLI: --version, --explain, --json, config errors."""

import json
import subprocess
from unittest.mock import patch

from typer.testing import CliRunner

from vaapicheck import __version__
from vaapicheck.cli import app
from vaapicheck.context import RunContext
from vaapicheck.models import HostProfile
from vaapicheck.rules.base import Classification
from vaapicheck.rules.registry import ENV_CHECKS, PREF_CHECKS

cli = CliRunner()


def _ctx() -> RunContext:
    ctx = RunContext()
    ctx.note("SYSTEM INFO", "Kernel:          6.8.0")
    ctx.flag("SYSTEM INFO", Classification.OK, "Firefox found")
    ctx.flag("SUMMARY", Classification.WARN, "Firefox is a Snap", "Switch to .deb")
    return ctx


def _run(args, tmp_path, ctx=None):
    host = HostProfile(user="alice", home=str(tmp_path))
    with patch("vaapicheck.cli.inspect_host", return_value=host), \
            patch("vaapicheck.cli.run_checks", return_value=ctx or _ctx()) as run_checks:
        result = cli.invoke(app, args, env={"XDG_CONFIG_HOME": str(tmp_path), "NO_COLOR": "1"})
    return result, run_checks


def test_version():
    result = cli.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_explain_list():
    result = cli.invoke(app, ["--explain", "list"])
    assert result.exit_code == 0
    for d in ENV_CHECKS + PREF_CHECKS:
        assert d.name in result.output


def test_explain_setting():
    result = cli.invoke(app, ["--explain", "NVD_BACKEND"])
    assert result.exit_code == 0
    assert "Expected: direct" in result.output
    assert "Severity: critical" in result.output


def test_explain_unknown_is_usage_error():
    result = cli.invoke(app, ["--explain", "NOT_A_SETTING"])
    assert result.exit_code == 2
    assert "Unknown setting: NOT_A_SETTING" in result.output


def test_missing_config_is_usage_error(tmp_path):
    result, _ = _run(["--config", str(tmp_path / "nope.yaml")], tmp_path)
    assert result.exit_code == 2
    assert "not found" in result.output


def test_human_report_exits_zero_with_warnings(tmp_path):
    """The verdict lives in the report, not the exit code."""
    result, _ = _run([], tmp_path)
    assert result.exit_code == 0
    assert "── SYSTEM INFO" in result.output
    assert "Found 1 warning(s), no critical issues." in result.output
    assert "Hint: Switch to .deb" in result.output
    assert "\x1b[" not in result.output


def test_json_output(tmp_path):
    result, _ = _run(["--json"], tmp_path)
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["verdict"] == "warnings only"
    assert (data["issues"], data["warnings"]) == (0, 1)
    assert [r["classification"] for r in data["results"]] == ["OK", "WARN"]
    assert data["notes"][0]["section"] == "SYSTEM INFO"


def test_cli_flags_override_config(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("profile: work\ntimeout: 30\n")
    result, run_checks = _run(["--config", str(cfg), "--timeout", "2", "--json"], tmp_path)
    assert result.exit_code == 0
    host, resolver, settings = run_checks.call_args[0]
    assert settings.profile == "work"
    assert settings.timeout == 2
    assert resolver.timeout == 2


def test_timeout_reaches_host_inspection(tmp_path):
    """--timeout bounds every subprocess, including those run while inspecting the host."""
    done = subprocess.CompletedProcess([], 1, stdout="")
    with patch("vaapicheck.scanner.commands.subprocess.run", return_value=done) as run, \
            patch("vaapicheck.scanner.host.shutil.which", return_value=None), \
            patch("vaapicheck.cli.run_checks", return_value=_ctx()):
        result = cli.invoke(app, ["--timeout", "2", "--json"], env={"XDG_CONFIG_HOME": str(tmp_path)})
    assert result.exit_code == 0
    called = [c.args[0][0] for c in run.call_args_list]
    assert "nvidia-smi" in called and "lspci" in called
    assert {c.kwargs["timeout"] for c in run.call_args_list} == {2}
