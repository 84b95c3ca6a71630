"""Tests for fact resolution: env precedence, persisted values, prefs, kernel params."""

from pathlib import Path
from unittest.mock import patch

from vaapicheck.context import RunContext
from vaapicheck.models import SOURCE_CMDLINE, SOURCE_SYSFS, SOURCE_SYSFS_SUDO, FactStatus
from vaapicheck.resolver import FactResolver
from vaapicheck.scanner import kernel
from vaapicheck.scanner.commands import EXIT_TIMED_OUT, CommandResult
from vaapicheck.scanner.firefox import Profile


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def _resolver(home, root, runner, environ=None) -> FactResolver:
    return FactResolver(environ=environ or {}, home=home, root=root, runner=runner)


def test_live_environment_wins(home, root, runner):
    _write(root / "etc/environment", "NVD_BACKEND=direct\n")
    r = _resolver(home, root, runner, {"NVD_BACKEND": "egl"})
    r.scan_env_sources(["NVD_BACKEND"], RunContext())
    fact = r.resolve_env("NVD_BACKEND")
    assert fact.value == "egl"
    assert fact.source == "environment"
    assert fact.persisted_value == "direct"


def test_file_only_value_is_unset_with_side_channel(home, root, runner):
    """Configured but not yet active: UNSET, persisted value and file reported."""
    env_file = _write(root / "etc/environment", 'LIBVA_DRIVER_NAME="nvidia"\n')
    r = _resolver(home, root, runner)
    r.scan_env_sources(["LIBVA_DRIVER_NAME"], RunContext())
    fact = r.resolve_env("LIBVA_DRIVER_NAME")
    assert not fact.is_set
    assert fact.status == FactStatus.UNSET
    assert fact.persisted_value == "nvidia"
    assert fact.persisted_source == str(env_file)


def test_empty_live_value_counts_as_unset(home, root, runner):
    r = _resolver(home, root, runner, {"MOZ_X11_EGL": ""})
    assert not r.resolve_env("MOZ_X11_EGL").is_set


def test_precedence_order_and_all_sources_recorded(home, root, runner):
    """environment.d beats shell files beats /etc; every file is recorded."""
    envd = _write(home / ".config/environment.d/50-vaapi.conf", "NVD_BACKEND=direct\n")
    profile = _write(home / ".profile", "export NVD_BACKEND=egl\n")
    system = _write(root / "etc/environment", "NVD_BACKEND=egl\n")
    profd = _write(root / "etc/profile.d/nvidia.sh", "export NVD_BACKEND=egl\n")
    ctx = RunContext()
    r = _resolver(home, root, runner)
    r.scan_env_sources(["NVD_BACKEND"], ctx)
    assert ctx.sources["NVD_BACKEND"] == [str(envd), str(profile), str(system), str(profd)]
    fact = r.resolve_env("NVD_BACKEND")
    assert fact.persisted_value == "direct"
    assert fact.persisted_source == str(envd)


def test_persisted_value_is_last_assignment_in_winning_file(home, root, runner):
    profile = _write(home / ".profile", "export NVD_BACKEND=egl\nexport NVD_BACKEND=direct  # override\n")
    _write(root / "etc/environment", "NVD_BACKEND=egl\n")
    r = _resolver(home, root, runner)
    r.scan_env_sources(["NVD_BACKEND"], RunContext())
    fact = r.resolve_env("NVD_BACKEND")
    assert (fact.persisted_value, fact.persisted_source) == ("direct", str(profile))


def test_environment_d_ignores_export_syntax(home, root, runner):
    _write(home / ".config/environment.d/10.conf", "export MOZ_X11_EGL=1\n")
    ctx = RunContext()
    r = _resolver(home, root, runner)
    r.scan_env_sources(["MOZ_X11_EGL"], ctx)
    assert "MOZ_X11_EGL" not in ctx.sources


def test_missing_files_are_not_errors(home, root, runner):
    r = _resolver(home, root, runner)
    assert r.scan_env_sources(["LIBVA_DRIVER_NAME"], RunContext()) == {}


def test_user_js_overrides_prefs_js(tmp_path, runner, home, root):
    profile = Profile(tmp_path / "abc.default")
    _write(profile.prefs_js, 'user_pref("media.av1.enabled", false);\n')
    _write(profile.user_js, 'user_pref("media.av1.enabled", true);\n')
    fact = _resolver(home, root, runner).resolve_pref(profile, "media.av1.enabled")
    assert fact.value == "true"
    assert fact.source == "user.js"


def test_pref_absent_everywhere_is_unset(tmp_path, runner, home, root):
    profile = Profile(tmp_path / "abc.default")
    _write(profile.prefs_js, 'user_pref("gfx.webrender.all", true);\n')
    fact = _resolver(home, root, runner).resolve_pref(profile, "media.av1.enabled")
    assert not fact.is_set


def test_drm_param_from_sysfs(home, root, runner):
    _write(root / kernel.NVIDIA_DRM_PARAMS / "modeset", "Y\n")
    fact = _resolver(home, root, runner).resolve_drm_param("modeset")
    assert (fact.value, fact.source) == ("1", SOURCE_SYSFS)


def test_drm_param_cmdline_fallback(home, root, runner):
    _write(root / "proc/cmdline", "quiet splash nvidia-drm.modeset=1\n")
    fact = _resolver(home, root, runner).resolve_drm_param("modeset", cmdline_fallback=True)
    assert (fact.value, fact.source) == ("1", SOURCE_CMDLINE)


def test_drm_param_missing_is_not_found(home, root, runner):
    fact = _resolver(home, root, runner).resolve_drm_param("fbdev")
    assert fact.status == FactStatus.NOT_FOUND


def _deny_reads(name):
    original = Path.read_text

    def read_text(self, *args, **kwargs):
        if self.name == name:
            raise PermissionError(13, "Permission denied", str(self))
        return original(self, *args, **kwargs)

    return read_text


def test_permission_denied_retries_once_with_sudo(root, runner):
    path = root / kernel.NVIDIA_DRM_PARAMS / "modeset"
    runner.responses[f"sudo -n cat {path}"] = CommandResult(0, "N\n")
    with patch.object(Path, "read_text", _deny_reads("modeset")):
        fact = kernel.read_param(path, runner, name="nvidia-drm.modeset")
    assert (fact.value, fact.source, fact.status) == ("0", SOURCE_SYSFS_SUDO, FactStatus.OK)
    assert sum(c.startswith("sudo") for c in runner.calls) == 1


def test_permission_denied_after_retry_is_denied_not_absent(root, runner):
    path = root / kernel.NVIDIA_DRM_PARAMS / "modeset"
    runner.responses["sudo"] = CommandResult(1, "")
    with patch.object(Path, "read_text", _deny_reads("modeset")):
        fact = kernel.read_param(path, runner)
    assert fact.status == FactStatus.DENIED
    assert not fact.is_set


def test_non_boolean_drm_param_is_malformed(home, root, runner):
    _write(root / kernel.NVIDIA_DRM_PARAMS / "modeset", "maybe\n")
    fact = _resolver(home, root, runner).resolve_drm_param("modeset")
    assert fact.status == FactStatus.MALFORMED
    assert not fact.is_set


def test_sudo_retry_timeout_is_timed_out_not_denied(root, runner):
    path = root / kernel.NVIDIA_DRM_PARAMS / "modeset"
    runner.responses["sudo"] = CommandResult(EXIT_TIMED_OUT)
    with patch.object(Path, "read_text", _deny_reads("modeset")):
        fact = kernel.read_param(path, runner)
    assert fact.status == FactStatus.TIMED_OUT
