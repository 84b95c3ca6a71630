"""Host inspector — user, session, GPUs, Firefox install and NVIDIA driver."""

import logging
import os
import platform
import pwd
import re
import shutil
from pathlib import Path
from typing import Mapping, Optional

from ..models import FactStatus, HostProfile
from . import firefox
from .commands import Runner, run_bounded

logger = logging.getLogger(__name__)

_BLACKWELL = re.compile(r"RTX 5[0-9]{3}|GB[12][0-9]{2}", re.IGNORECASE)
# Ampere (RTX 30xx / GA10x) and newer decode AV1 on NVDEC
_AMPERE_OR_NEWER = re.compile(
    r"RTX [3-9][0-9]{3}|GA10[0-9]|AD10[0-9]|GB[12][0-9]{2}|\bA[13][0-9]{2}[A-Z]?\b",
    re.IGNORECASE,
)
_GPU_LINE = re.compile(r"vga|3d|display", re.IGNORECASE)


def is_blackwell(gpu_name: Optional[str]) -> bool:
    return bool(gpu_name) and _BLACKWELL.search(gpu_name) is not None


def is_pre_ampere(gpu_name: Optional[str]) -> bool:
    """Unknown GPU names are not treated as pre-Ampere."""
    if not gpu_name:
        return False
    return _AMPERE_OR_NEWER.search(gpu_name) is None


def via_sudo(environ: Mapping[str, str]) -> bool:
    sudo_user = environ.get("SUDO_USER", "")
    return bool(sudo_user) and sudo_user != "root"


def real_user(environ: Mapping[str, str]) -> tuple[str, str]:
    """(user, home) of the invoking user, looking through sudo."""
    sudo_user = environ.get("SUDO_USER", "")
    if via_sudo(environ):
        try:
            return sudo_user, pwd.getpwnam(sudo_user).pw_dir
        except KeyError:
            logger.warning("could not determine home for %s — falling back to /home/%s", sudo_user, sudo_user)
            return sudo_user, f"/home/{sudo_user}"
    user = environ.get("USER") or environ.get("LOGNAME") or ""
    if not user:
        try:
            user = pwd.getpwuid(os.getuid()).pw_name
        except KeyError:
            user = "unknown"
    return user, environ.get("HOME") or str(Path.home())


def session_type(user: str, environ: Mapping[str, str], runner: Runner = run_bounded) -> str:
    """loginctl first, then XDG_SESSION_TYPE, then WAYLAND_DISPLAY / DISPLAY."""
    r = runner("loginctl", [])
    if r.ok:
        sid = next((ln.split()[0] for ln in r.stdout.splitlines() if user and user in ln.split()), None)
        if sid:
            t = runner("loginctl", ["show-session", sid, "-p", "Type", "--value"])
            if t.ok and t.stdout.strip():
                return t.stdout.strip()
    if environ.get("XDG_SESSION_TYPE"):
        return environ["XDG_SESSION_TYPE"]
    if environ.get("WAYLAND_DISPLAY"):
        return "wayland"
    if environ.get("DISPLAY"):
        return "x11"
    return "unknown"


def list_gpus(runner: Runner = run_bounded) -> list[str]:
    r = runner("lspci", ["-nn"])
    if not r.ok:
        return []
    return [ln.strip() for ln in r.stdout.splitlines() if _GPU_LINE.search(ln)]


def firefox_package(root: Path, runner: Runner = run_bounded) -> tuple[Optional[str], Optional[str]]:
    """(package type, apt origin)."""
    if (root / "snap/firefox/current").is_dir():
        return "snap", None
    r = runner("dpkg-query", ["-W", "-f=${Status}", "firefox"])
    if r.ok and "install" in r.stdout:
        origin = None
        policy = runner("apt-cache", ["policy", "firefox"])
        if policy.ok:
            lines = policy.stdout.splitlines()
            for i, ln in enumerate(lines):
                if ln.strip().startswith("***") and i + 1 < len(lines):
                    origin = lines[i + 1].split()[-1] if lines[i + 1].split() else None
                    break
        return "deb", origin
    if runner("rpm", ["-q", "firefox"]).ok:
        return "rpm", None
    if runner("flatpak", ["info", "org.mozilla.firefox"]).ok:
        return "flatpak", None
    return "unknown", None


def nvidia_smi_info(runner: Runner = run_bounded) -> tuple[FactStatus, Optional[str], Optional[str]]:
    """(query status, GPU name, driver version)."""
    r = runner("nvidia-smi", ["--query-gpu=name,driver_version", "--format=csv,noheader"])
    if r.missing:
        return FactStatus.NOT_FOUND, None, None
    if r.timed_out:
        return FactStatus.TIMED_OUT, None, None
    if not r.ok:
        return FactStatus.FAILED, None, None
    line = r.stdout.strip().splitlines()[0] if r.stdout.strip() else ""
    name, _, version = line.rpartition(", ")
    name, version = name.strip() or None, version.strip()
    # "[N/A]" or "ERR!" instead of a dotted version
    if not version.split(".", 1)[0].isdigit():
        logger.debug("Unparsable nvidia-smi output: %r", line)
        return FactStatus.MALFORMED, name, None
    return FactStatus.OK, name, version


def inspect_host(
    environ: Optional[Mapping[str, str]] = None,
    runner: Runner = run_bounded,
    root: Path = Path("/"),
) -> HostProfile:
    """Inspect the current machine and return a HostProfile."""
    environ = os.environ if environ is None else environ
    user, home = real_user(environ)

    ff_path = shutil.which("firefox")
    ff_real = os.path.realpath(ff_path) if ff_path else None
    ff_version = firefox.read_version(ff_real, runner) if ff_path else None
    package, origin = firefox_package(root, runner) if ff_path else (None, None)

    smi_status, gpu_name, driver = nvidia_smi_info(runner)

    return HostProfile(
        user=user,
        home=home,
        via_sudo=via_sudo(environ),
        kernel=platform.release(),
        session_type=session_type(user, environ, runner),
        desktop=environ.get("XDG_CURRENT_DESKTOP") or "unknown",
        gpus=list_gpus(runner),
        firefox_path=ff_path,
        firefox_real_path=ff_real,
        firefox_version=ff_version,
        firefox_major=firefox.major_version(ff_version),
        firefox_package=package,
        firefox_package_source=origin,
        nvidia_smi=smi_status != FactStatus.NOT_FOUND,
        nvidia_smi_status=smi_status,
        nvidia_gpu_name=gpu_name,
        nvidia_driver_version=driver,
    )
