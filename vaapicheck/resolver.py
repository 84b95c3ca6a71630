"""Fact resolver — current value of a setting, and where it came from."""

import logging
import os
from pathlib import Path
from typing import Mapping, NamedTuple, Optional, Sequence

from .context import RunContext
from .models import (
    SOURCE_CMDLINE,
    SOURCE_ENVIRONMENT,
    SOURCE_PREFS_JS,
    SOURCE_USER_JS,
    FactStatus,
    ResolvedFact,
)
from .scanner import firefox, kernel, packages
from .scanner.commands import DEFAULT_TIMEOUT, CommandResult, Runner, run_bounded
from .scanner.envfiles import Assignment, scan_env_file, sorted_glob

logger = logging.getLogger(__name__)


class EnvSource(NamedTuple):
    path: Path
    allow_export: bool


class FactResolver:
    """
    Resolves settings from the live environment, config files, sysfs and tools.

    Env precedence, highest first:
      1. live process environment
      2. ~/.config/environment.d/*.conf (bare NAME=value)
      3. ~/.pam_environment, ~/.bash_profile, ~/.profile, ~/.bashrc
      4. /etc/environment
      5. /etc/profile.d/*.sh, in directory order

    Never raises for an unavailable collaborator; the fact comes back unset with a status.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        root: Path = Path("/"),
        runner: Runner = run_bounded,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.environ = dict(os.environ if environ is None else environ)
        self.home = Path(home) if home is not None else Path.home()
        self.root = Path(root)
        self._runner = runner
        self.timeout = timeout
        # name -> assignments in precedence order (filled by scan_env_sources)
        self.assignments: dict[str, list[Assignment]] = {}
        # source path -> assignments found in it, in scan order
        self.hits: dict[str, list[Assignment]] = {}

    # -- subprocess -----------------------------------------------------

    def run(self, cmd: str, args: Sequence[str] = (), timeout: Optional[float] = None, **kwargs) -> CommandResult:
        """Bounded subprocess call with the configured timeout."""
        return self._runner(cmd, list(args), timeout=timeout or self.timeout, **kwargs)

    @property
    def runner(self) -> Runner:
        """Runner with the configured timeout, for scanner helpers."""
        return self.run

    # -- environment ----------------------------------------------------

    def env_sources(self) -> list[EnvSource]:
        """Config files in precedence order."""
        home, etc = self.home, self.root / "etc"
        sources = [EnvSource(p, False) for p in sorted_glob(home / ".config/environment.d", "*.conf")]
        sources += [
            EnvSource(home / ".pam_environment", True),
            EnvSource(home / ".bash_profile", True),
            EnvSource(home / ".profile", True),
            EnvSource(home / ".bashrc", True),
            EnvSource(etc / "environment", True),
        ]
        sources += [EnvSource(p, True) for p in sorted_glob(etc / "profile.d", "*.sh")]
        return sources

    def scan_env_sources(self, names: Sequence[str], ctx: RunContext) -> dict[str, list[Assignment]]:
        """
        Scan every env config file once. Every file with an assignment is
        recorded in the run's source record, winning or not.
        """
        self.assignments = {}
        self.hits = {}
        for src in self.env_sources():
            found = scan_env_file(src.path, names, allow_export=src.allow_export)
            if not found:
                continue
            self.hits[str(src.path)] = found
            for a in found:
                ctx.record_source(a.name, a.path)
                self.assignments.setdefault(a.name, []).append(a)
        return self.hits

    def resolve_env(self, name: str) -> ResolvedFact:
        """
        Live value if set. A file-only value is reported as unset with a persisted
        side-channel: the last assignment in the highest-precedence file.
        """
        persisted = self.assignments.get(name)
        pv, ps = None, ""
        if persisted:
            top = [a for a in persisted if a.path == persisted[0].path][-1]
            pv, ps = top.value, top.path
        live = self.environ.get(name)
        if live is not None and live != "":
            return ResolvedFact(name, live, SOURCE_ENVIRONMENT, FactStatus.OK, pv, ps)
        return ResolvedFact(name, status=FactStatus.UNSET, persisted_value=pv, persisted_source=ps)

    # -- firefox prefs --------------------------------------------------

    def resolve_pref(self, profile: firefox.Profile, name: str) -> ResolvedFact:
        """user.js overrides prefs.js; within a file the last assignment wins."""
        value = firefox.read_pref(profile.user_js, name)
        if value is not None:
            return ResolvedFact(name, value, SOURCE_USER_JS, FactStatus.OK)
        value = firefox.read_pref(profile.prefs_js, name)
        if value is not None:
            return ResolvedFact(name, value, SOURCE_PREFS_JS, FactStatus.OK)
        return ResolvedFact(name, status=FactStatus.UNSET)

    # -- kernel ---------------------------------------------------------

    def resolve_drm_param(self, param: str, cmdline_fallback: bool = False) -> ResolvedFact:
        """
        nvidia_drm module parameter. With cmdline_fallback, an unreadable or
        disabled parameter is checked against `nvidia-drm.<param>=1` on the cmdline.
        """
        name = f"nvidia-drm.{param}"
        fact = kernel.read_param(self.root / kernel.NVIDIA_DRM_PARAMS / param, self.runner, name=name)
        if fact.is_set and fact.value not in ("0", "1"):
            logger.debug("Unexpected value for %s: %r", name, fact.value)
            fact = ResolvedFact(name, status=FactStatus.MALFORMED)
        if fact.value == "1" or not cmdline_fallback:
            return fact
        if kernel.cmdline_sets(kernel.read_cmdline(self.root), name):
            return ResolvedFact(name, "1", SOURCE_CMDLINE, FactStatus.OK)
        return fact

    # -- packages -------------------------------------------------------

    def package_version(self, names: packages.PackageNames) -> Optional[packages.PackageVersion]:
        return packages.package_version(names, self.runner)
