"""nvidia-vaapi-driver — library, EGL vendor config, libva packages."""

import os
import re
from pathlib import Path
from typing import Optional

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification
from ..scanner.commands import have
from ..scanner.packages import PackageNames, install_hint

SECTION = "NVIDIA-VAAPI-DRIVER"

LIBRARY = "nvidia_drv_video.so"
LIBRARY_DIRS = (
    "usr/lib/x86_64-linux-gnu/dri",
    "usr/lib64/dri",
    "usr/lib/dri",
)
EGL_VENDOR_DIRS = (
    "usr/share/glvnd/egl_vendor.d",
    "usr/local/share/glvnd/egl_vendor.d",
    "etc/glvnd/egl_vendor.d",
)
NVIDIA_EGL_JSON = "10_nvidia.json"

NVD_PACKAGE = PackageNames("nvidia-vaapi-driver", "libva-nvidia-driver", "nvidia-vaapi-driver")
LIBVA_PACKAGE = PackageNames("libva2", "libva", "libva")
LIBVA_BACKENDS = ("libva-drm2", "libva-x11-2")
LIBVA_MIN_MINOR = 20


def find_library(resolver: FactResolver) -> Optional[str]:
    """Standard dri dirs, then LD_LIBRARY_PATH, then the linker cache."""
    for d in LIBRARY_DIRS:
        p = resolver.root / d / LIBRARY
        if p.is_file():
            return str(p)
    for d in filter(None, resolver.environ.get("LD_LIBRARY_PATH", "").split(":")):
        p = Path(d) / LIBRARY
        if p.is_file():
            return str(p)
    r = resolver.run("ldconfig", ["-p"])
    if r.ok:
        for ln in r.stdout.splitlines():
            if "=>" in ln and ln.rstrip().endswith(LIBRARY):
                candidate = ln.split("=>", 1)[1].strip()
                if os.path.isfile(candidate):
                    return candidate
    return None


def egl_vendor_files(resolver: FactResolver) -> list[Path]:
    files = []
    for d in EGL_VENDOR_DIRS:
        base = resolver.root / d
        if base.is_dir():
            files.extend(sorted(p for p in base.glob("*.json") if p.is_file()))
    return files


def libva_minor(version: str) -> Optional[int]:
    m = re.match(r"^\d+\.(\d+)", version)
    return int(m.group(1)) if m else None


def _check_libva_backends(resolver: FactResolver, ctx: RunContext) -> None:
    for lib in LIBVA_BACKENDS:
        found = resolver.package_version(PackageNames(lib, "libva", "libva"))
        if found is None:
            ctx.flag(SECTION, Classification.WARN, f"{lib} not found (needed for DRM/X11 VAAPI backend)",
                     install_hint(PackageNames(lib), have))
        elif found.backend == "dpkg":
            ctx.flag(SECTION, Classification.OK, f"{lib} installed")
        else:
            ctx.flag(SECTION, Classification.OK,
                     f"libva installed ({found.backend} — provides {lib} equivalent)")
            break


def _check_libva_version(resolver: FactResolver, ctx: RunContext) -> None:
    found = resolver.package_version(LIBVA_PACKAGE)
    if found is None:
        return
    ctx.libva_version = found.version
    ctx.note(SECTION, f"libva Version:   {found.version}")
    minor = libva_minor(found.version)
    if minor is None:
        ctx.flag(SECTION, Classification.WARN,
                 f"Could not determine libva minor version from '{found.version}'",
                 f"Version check skipped; ensure libva >= 2.{LIBVA_MIN_MINOR} is installed")
    elif minor < LIBVA_MIN_MINOR:
        ctx.flag(SECTION, Classification.WARN,
                 f"libva2 {found.version} may be too old for nvidia-vaapi-driver",
                 f"Version 2.{LIBVA_MIN_MINOR}+ recommended; upgrade via your package manager")


def _check_abi(resolver: FactResolver, ctx: RunContext) -> None:
    """nvidia_drv_video.so must link against the installed libva major."""
    if not ctx.nvd_path or not ctx.libva_version:
        return
    r = resolver.run("objdump", ["-p", ctx.nvd_path])
    if not r.ok:
        return
    needed = next((ln.split()[-1] for ln in r.stdout.splitlines()
                   if "NEEDED" in ln and re.search(r"libva\.so\.\d+", ln)), None)
    if not needed:
        return
    m_needed = re.search(r"\.so\.(\d+)", needed)
    m_installed = re.match(r"^(\d+)", ctx.libva_version)
    if m_needed and m_installed and m_needed.group(1) != m_installed.group(1):
        ctx.flag(SECTION, Classification.WARN,
                 f"{LIBRARY} requires {needed} but installed libva major is {m_installed.group(1)}",
                 "ABI mismatch — reinstall nvidia-vaapi-driver against the current libva version")


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    ctx.nvd_path = find_library(resolver)
    if ctx.nvd_path:
        ctx.flag(SECTION, Classification.OK, f"{LIBRARY} found at {ctx.nvd_path}")
    else:
        ctx.flag(SECTION, Classification.FAIL, f"{LIBRARY} not found", install_hint(NVD_PACKAGE, have))

    vendors = egl_vendor_files(resolver)
    nvidia_json = next((p for p in vendors if p.name == NVIDIA_EGL_JSON), None)
    if nvidia_json:
        ctx.flag(SECTION, Classification.OK, f"NVIDIA EGL vendor config found at {nvidia_json}")
    else:
        ctx.flag(SECTION, Classification.WARN,
                 f"NVIDIA EGL vendor config ({NVIDIA_EGL_JSON}) not found in standard locations",
                 "May cause EGL init failures; check that the nvidia-utils / libnvidia-egl-gbm package is installed")
    if len(vendors) > 1 and not resolver.environ.get("__EGL_VENDOR_LIBRARY_FILENAMES"):
        ctx.flag(SECTION, Classification.WARN,
                 f"Multiple EGL vendor configs found ({len(vendors)}) and __EGL_VENDOR_LIBRARY_FILENAMES is not set",
                 "On multi-GPU Intel+NVIDIA systems, set: "
                 "__EGL_VENDOR_LIBRARY_FILENAMES=/usr/share/glvnd/egl_vendor.d/10_nvidia.json")

    pkg = resolver.package_version(NVD_PACKAGE)
    if pkg:
        ctx.note(SECTION, f"Package Version: {pkg.version} ({pkg.backend})")

    _check_libva_backends(resolver, ctx)
    _check_libva_version(resolver, ctx)
    _check_abi(resolver, ctx)
