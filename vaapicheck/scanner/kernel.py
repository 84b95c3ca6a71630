"""Kernel-exposed facts: module parameters, cmdline, loaded modules, modprobe.d."""

import logging
import re
from pathlib import Path
from typing import Optional

from ..models import SOURCE_SYSFS, SOURCE_SYSFS_SUDO, FactStatus, ResolvedFact
from .commands import Runner, run_bounded
from .envfiles import sorted_glob

logger = logging.getLogger(__name__)

NVIDIA_DRM_PARAMS = Path("sys/module/nvidia_drm/parameters")

_TRUE = {"Y", "1"}
_FALSE = {"N", "0"}


def normalize_bool(raw: str) -> str:
    """Sysfs booleans come back as Y/N or 1/0; report them as 1/0."""
    raw = raw.strip()
    if raw in _TRUE:
        return "1"
    if raw in _FALSE:
        return "0"
    return raw


def read_param(path: Path, runner: Runner = run_bounded, name: str = "") -> ResolvedFact:
    """
    Read a kernel pseudo-file.
    Permission denied triggers exactly one `sudo -n cat` retry; a failed retry is
    reported as DENIED (TIMED_OUT if sudo hung), which is distinct from NOT_FOUND.
    """
    name = name or path.name
    try:
        raw = path.read_text()
        return ResolvedFact(name, normalize_bool(raw), SOURCE_SYSFS, FactStatus.OK)
    except FileNotFoundError:
        return ResolvedFact(name, status=FactStatus.NOT_FOUND)
    except PermissionError:
        logger.debug("Permission denied reading %s, retrying with sudo -n", path)
    except OSError as e:
        logger.debug("Error reading %s: %s", path, e)
        return ResolvedFact(name, status=FactStatus.FAILED)

    r = runner("sudo", ["-n", "cat", str(path)])
    if r.ok and r.stdout.strip():
        return ResolvedFact(name, normalize_bool(r.stdout), SOURCE_SYSFS_SUDO, FactStatus.OK)
    if r.timed_out:
        return ResolvedFact(name, status=FactStatus.TIMED_OUT)
    return ResolvedFact(name, status=FactStatus.DENIED)


def read_cmdline(root: Path) -> str:
    try:
        return (root / "proc/cmdline").read_text()
    except OSError:
        return ""


def cmdline_sets(cmdline: str, param: str, values: str = "1Y") -> bool:
    """True if `param=<one of values>` appears on the kernel cmdline."""
    return re.search(rf"(?:^|\s){re.escape(param)}=[{values}](?:\s|$)", cmdline) is not None


def module_loaded(module: str, runner: Runner = run_bounded, root: Optional[Path] = None) -> Optional[bool]:
    """lsmod lookup, falling back to /proc/modules. None when neither is readable."""
    r = runner("lsmod", [], timeout=5)
    text = r.stdout if r.ok else None
    if text is None and root is not None:
        try:
            text = (root / "proc/modules").read_text()
        except OSError:
            text = None
    if text is None:
        return None
    return any(ln.split(" ", 1)[0] == module for ln in text.splitlines())


def open_kernel_modules(root: Path, runner: Runner = run_bounded) -> bool:
    """Open GPU kernel modules: OpenRMEnabled in the driver params, else modinfo path."""
    try:
        for ln in (root / "proc/driver/nvidia/params").read_text().splitlines():
            if ln.lower().startswith("openrmenabled"):
                return ln.split()[-1].strip() == "1"
    except OSError:
        pass
    r = runner("modinfo", ["-F", "filename", "nvidia"])
    return r.ok and "open" in r.stdout


_MODESET_OPTION = re.compile(r"^\s*options\s+nvidia[_-]drm\s+.*modeset=1")


def persistent_modeset(root: Path) -> Optional[tuple[str, str]]:
    """(file, line) of the first /etc/modprobe.d/*.conf enabling nvidia-drm modeset."""
    for f in sorted_glob(root / "etc/modprobe.d", "*.conf"):
        try:
            for ln in f.read_text(errors="replace").splitlines():
                if _MODESET_OPTION.match(ln):
                    return str(f), ln.strip()
        except OSError as e:
            logger.debug("Could not read %s: %s", f, e)
    return None
