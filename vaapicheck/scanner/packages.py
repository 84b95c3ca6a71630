"""Package-manager queries — dpkg, pacman, rpm tried in that order."""

import logging
import re
from typing import NamedTuple, Optional

from .commands import Runner, run_bounded

logger = logging.getLogger(__name__)

VA_DRIVER_PATTERN = re.compile(r"va-driver|vdpau|mesa-va|intel-media|nvidia-vaapi|libva", re.IGNORECASE)


class PackageNames(NamedTuple):
    """Per-backend package names; pacman and rpm default to the apt name."""

    apt: str
    pacman: Optional[str] = None
    rpm: Optional[str] = None


class PackageVersion(NamedTuple):
    version: str
    backend: str


def _dpkg(name: str, runner: Runner) -> Optional[str]:
    r = runner("dpkg-query", ["-W", "-f=${Status} ${Version}", name])
    if not r.ok or "install ok installed" not in r.stdout:
        return None
    parts = r.stdout.split()
    return parts[-1] if len(parts) > 3 else None


def _pacman(name: str, runner: Runner) -> Optional[str]:
    r = runner("pacman", ["-Q", name])
    if not r.ok:
        return None
    parts = r.stdout.split()
    return parts[1] if len(parts) > 1 else None


def _rpm(name: str, runner: Runner) -> Optional[str]:
    r = runner("rpm", ["-q", "--queryformat", "%{VERSION}", name])
    out = r.stdout.strip()
    if not r.ok or not out or "not installed" in out:
        return None
    return out


BACKENDS = (
    ("dpkg", _dpkg, lambda n: n.apt),
    ("pacman", _pacman, lambda n: n.pacman or n.apt),
    ("rpm", _rpm, lambda n: n.rpm or n.apt),
)


def package_version(names: PackageNames, runner: Runner = run_bounded) -> Optional[PackageVersion]:
    """First backend that reports the package installed wins. None when absent everywhere."""
    for backend, probe, pick in BACKENDS:
        version = probe(pick(names), runner)
        if version:
            logger.debug("%s: %s %s", backend, pick(names), version)
            return PackageVersion(version, backend)
    return None


def installed_va_drivers(runner: Runner = run_bounded) -> list[str]:
    """`name version` lines for VA-API / VDPAU related packages across backends."""
    lines: list[str] = []
    r = runner("dpkg", ["-l"])
    if r.ok:
        for ln in r.stdout.splitlines():
            parts = ln.split()
            if len(parts) >= 3 and parts[0].startswith("ii") and VA_DRIVER_PATTERN.search(parts[1]):
                lines.append(f"{parts[1]:<40} {parts[2]}")
    r = runner("rpm", ["-qa"])
    if r.ok:
        lines.extend(ln.strip() for ln in r.stdout.splitlines() if VA_DRIVER_PATTERN.search(ln))
    r = runner("pacman", ["-Q"])
    if r.ok:
        for ln in r.stdout.splitlines():
            parts = ln.split()
            if len(parts) >= 2 and VA_DRIVER_PATTERN.search(parts[0]):
                lines.append(f"{parts[0]:<40} {parts[1]}")
    return lines


def install_hint(names: PackageNames, have_cmd) -> str:
    """Distro-appropriate install command for a package."""
    if have_cmd("apt-get"):
        return f"sudo apt-get install {names.apt}"
    if have_cmd("pacman"):
        return f"sudo pacman -S {names.pacman or names.apt}"
    if have_cmd("dnf"):
        return f"sudo dnf install {names.rpm or names.apt}"
    return f"Install {names.apt} via your package manager"
