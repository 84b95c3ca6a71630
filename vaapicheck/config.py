"""Optional YAML configuration — defaults, registry overrides, extra env checks."""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import VARIES
from .rules.base import CheckDefinition, Severity
from .rules.registry import ENV_CHECKS, PREF_CHECKS
from .scanner.commands import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_NAME = "config.yaml"
_OVERRIDE_KEYS = {"expected", "severity", "fallback"}


class ConfigError(ValueError):
    """Configuration file is unreadable or has the wrong shape."""


@dataclass
class Settings:
    """Effective options for one run."""

    profile: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    color: Optional[bool] = None  # None = decide from the terminal
    env_checks: tuple[CheckDefinition, ...] = ENV_CHECKS
    pref_checks: tuple[CheckDefinition, ...] = PREF_CHECKS
    source: Optional[str] = None  # config file actually loaded
    extra: dict[str, Any] = field(default_factory=dict)


def default_config_path(environ=None) -> Path:
    environ = os.environ if environ is None else environ
    base = environ.get("XDG_CONFIG_HOME") or str(Path(environ.get("HOME") or Path.home()) / ".config")
    return Path(base) / "vaapicheck" / CONFIG_NAME


def _expected(value: Any) -> Any:
    if isinstance(value, str) and value.lower() == "varies":
        return VARIES
    return _literal(value)


def _literal(value: Any) -> Optional[str]:
    """YAML scalars to the literal form settings are compared in (true, 1, "x")."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _severity(value: Any, where: str) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError:
        raise ConfigError(f"{where}: severity must be 'critical' or 'advisory', got {value!r}") from None


def _apply_overrides(checks: tuple[CheckDefinition, ...], overrides: dict) -> tuple[CheckDefinition, ...]:
    out = []
    for d in checks:
        o = overrides.get(d.name)
        if o is None:
            out.append(d)
            continue
        changes: dict[str, Any] = {}
        if "expected" in o:
            changes["expected"] = _expected(o["expected"])
        if "severity" in o:
            changes["severity"] = _severity(o["severity"], f"overrides.{d.name}")
        if "fallback" in o:
            changes["fallback"] = _literal(o["fallback"])
        out.append(replace(d, **changes))
    return tuple(out)


def _extra_env(items: Any, existing: tuple[CheckDefinition, ...]) -> tuple[CheckDefinition, ...]:
    if not isinstance(items, list):
        raise ConfigError("extra_env must be a list")
    names = {d.name for d in existing}
    added = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("name") or "expected" not in item:
            raise ConfigError(f"extra_env[{i}]: needs 'name' and 'expected'")
        name = str(item["name"])
        if name in names:
            raise ConfigError(f"extra_env[{i}]: {name} is already a registered check")
        names.add(name)
        added.append(CheckDefinition(
            name=name,
            expected=_expected(item["expected"]),
            severity=_severity(item.get("severity", "advisory"), f"extra_env[{i}]"),
            fallback=_literal(item.get("fallback")),
            description=str(item.get("description", "")),
            hint=str(item.get("hint", "")),
        ))
    return tuple(added)


def settings_from_dict(data: dict) -> Settings:
    """Build Settings from parsed YAML. Raises ConfigError on bad shape."""
    if not isinstance(data, dict):
        raise ConfigError("top level must be a mapping")
    settings = Settings()
    if data.get("profile") is not None:
        settings.profile = str(data["profile"])
    if data.get("timeout") is not None:
        try:
            settings.timeout = float(data["timeout"])
        except (TypeError, ValueError):
            raise ConfigError(f"timeout must be a number, got {data['timeout']!r}") from None
        if settings.timeout <= 0:
            raise ConfigError("timeout must be positive")
    if data.get("color") is not None:
        settings.color = bool(data["color"])

    overrides = data.get("overrides") or {}
    if not isinstance(overrides, dict):
        raise ConfigError("overrides must be a mapping of setting name to fields")
    known = {d.name for d in ENV_CHECKS + PREF_CHECKS}
    for name, fields in overrides.items():
        if name not in known:
            raise ConfigError(f"overrides: unknown setting {name}")
        if not isinstance(fields, dict) or not set(fields) <= _OVERRIDE_KEYS:
            raise ConfigError(f"overrides.{name}: allowed keys are {', '.join(sorted(_OVERRIDE_KEYS))}")
    settings.env_checks = _apply_overrides(ENV_CHECKS, overrides)
    settings.pref_checks = _apply_overrides(PREF_CHECKS, overrides)
    if data.get("extra_env"):
        settings.env_checks = settings.env_checks + _extra_env(data["extra_env"], settings.env_checks)

    settings.extra = {k: v for k, v in data.items()
                      if k not in {"profile", "timeout", "color", "overrides", "extra_env"}}
    if settings.extra:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(settings.extra))
    return settings


def load_settings(path: Optional[Path] = None, environ=None) -> Settings:
    """
    Load settings from `path`, or from the default location if it exists.
    An explicit path that is missing is an error; a missing default is not.
    """
    explicit = path is not None
    path = Path(path) if explicit else default_config_path(environ)
    if not path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {path}")
        return Settings()
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"{path}: {e}") from e
    settings = settings_from_dict(data)
    settings.source = str(path)
    logger.debug("Loaded config from %s", path)
    return settings
