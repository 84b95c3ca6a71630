"""Tests for YAML configuration loading."""

import pytest

from vaapicheck.config import ConfigError, Settings, default_config_path, load_settings, settings_from_dict
from vaapicheck.models import VARIES
from vaapicheck.rules.base import Severity
from vaapicheck.rules.registry import ENV_CHECKS


def _by_name(checks, name):
    return next(d for d in checks if d.name == name)


def test_missing_default_config_is_fine(tmp_path):
    settings = load_settings(environ={"XDG_CONFIG_HOME": str(tmp_path)})
    assert settings == Settings()


def test_explicit_missing_config_is_an_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(tmp_path / "nope.yaml")


def test_default_config_path_uses_xdg(tmp_path):
    assert default_config_path({"XDG_CONFIG_HOME": str(tmp_path)}) == tmp_path / "vaapicheck" / "config.yaml"


def test_load_full_config(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "profile: work\n"
        "timeout: 3\n"
        "color: false\n"
        "overrides:\n"
        "  MOZ_DISABLE_RDD_SANDBOX:\n"
        "    severity: advisory\n"
        "  media.av1.enabled:\n"
        "    expected: false\n"
        "extra_env:\n"
        "  - name: VDPAU_DRIVER\n"
        "    expected: nvidia\n"
        "  - name: MY_DEBUG\n"
        "    expected: varies\n"
    )
    s = load_settings(cfg)
    assert (s.profile, s.timeout, s.color, s.source) == ("work", 3.0, False, str(cfg))
    assert _by_name(s.env_checks, "MOZ_DISABLE_RDD_SANDBOX").severity == Severity.ADVISORY
    assert _by_name(s.pref_checks, "media.av1.enabled").expected == "false"
    assert len(s.env_checks) == len(ENV_CHECKS) + 2
    assert _by_name(s.env_checks, "MY_DEBUG").expected is VARIES


def test_unknown_override_is_rejected():
    with pytest.raises(ConfigError, match="unknown setting"):
        settings_from_dict({"overrides": {"NOT_A_SETTING": {"expected": "1"}}})


def test_bad_override_key_is_rejected():
    with pytest.raises(ConfigError):
        settings_from_dict({"overrides": {"NVD_BACKEND": {"value": "direct"}}})


def test_duplicate_extra_env_is_rejected():
    with pytest.raises(ConfigError, match="already a registered check"):
        settings_from_dict({"extra_env": [{"name": "NVD_BACKEND", "expected": "direct"}]})


def test_bad_severity_and_timeout():
    with pytest.raises(ConfigError, match="severity"):
        settings_from_dict({"overrides": {"NVD_BACKEND": {"severity": "fatal"}}})
    with pytest.raises(ConfigError, match="timeout"):
        settings_from_dict({"timeout": "soon"})


def test_invalid_yaml(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("overrides: [unclosed\n")
    with pytest.raises(ConfigError):
        load_settings(cfg)


def test_top_level_must_be_mapping(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_settings(cfg)
