"""DRM render nodes — permissions, owning driver, group membership."""

import grp
import os
import pwd
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification

SECTION = "DRM RENDER NODES"

REQUIRED_GROUPS = ("video", "render")


@dataclass
class RenderNode:
    path: Path
    driver: Optional[str] = None
    pci_id: Optional[str] = None
    perms: str = ""

    @property
    def accessible(self) -> bool:
        return os.access(self.path, os.R_OK | os.W_OK)


def _owner(st: os.stat_result) -> str:
    try:
        user = pwd.getpwuid(st.st_uid).pw_name
    except KeyError:
        user = str(st.st_uid)
    try:
        group = grp.getgrgid(st.st_gid).gr_name
    except KeyError:
        group = str(st.st_gid)
    return f"{user}:{group}"


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text().strip()
    except OSError:
        return None


def describe_node(path: Path, root: Path) -> RenderNode:
    """Driver name and PCI vendor:device from /sys/class/drm/<node>/device."""
    node = RenderNode(path)
    try:
        st = path.stat()
        node.perms = f"{stat.filemode(st.st_mode)} {_owner(st)}"
    except OSError:
        pass
    device = root / "sys/class/drm" / path.name / "device"
    driver = device / "driver"
    if driver.exists():
        node.driver = driver.resolve().name
    vendor, dev = _read(device / "vendor"), _read(device / "device")
    if vendor and dev:
        node.pci_id = f"{vendor}:{dev}"
    return node


def render_nodes(root: Path) -> list[RenderNode]:
    dri = root / "dev/dri"
    if not dri.is_dir():
        return []
    return [describe_node(p, root) for p in sorted(dri.glob("render*"))]


def user_groups(user: str, resolver: FactResolver) -> Optional[list[str]]:
    r = resolver.run("id", ["-nG", user])
    if r.ok:
        return r.stdout.split()
    r = resolver.run("groups", [])
    return r.stdout.split() if r.ok else None


def _check_nvd_gpu(resolver: FactResolver, ctx: RunContext) -> None:
    value = resolver.environ.get("NVD_GPU", "")
    if not value:
        return
    if not value.isdigit():
        ctx.flag(SECTION, Classification.WARN,
                 f"NVD_GPU='{value}' is not a valid integer (should be CUDA GPU index, e.g. 0 or 1)")
        return
    r = resolver.run("nvidia-smi", ["--list-gpus"], timeout=5)
    count = len([ln for ln in r.stdout.splitlines() if ln.strip()]) if r.ok else 0
    if count and int(value) >= count:
        ctx.flag(SECTION, Classification.WARN,
                 f"NVD_GPU={value} is out of range (valid: 0–{count - 1}; {count} CUDA device(s) found)",
                 f"Set NVD_GPU to a value between 0 and {count - 1}")
    else:
        ctx.flag(SECTION, Classification.OK, f"NVD_GPU is set to {value}")


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    nodes = render_nodes(resolver.root)
    ctx.nvidia_render_node = next((str(n.path) for n in nodes if n.driver == "nvidia"), None)

    if not nodes:
        ctx.flag(SECTION, Classification.FAIL, "No render nodes found in /dev/dri/")
    for n in nodes:
        ctx.note(SECTION, f"{n.path}  {n.perms}".rstrip())
        ctx.note(SECTION, f"  Driver: {n.driver or 'unknown'}  PCI: {n.pci_id or 'unknown'}")
        if n.accessible:
            ctx.note(SECTION, "  Current user has read/write access")
        else:
            ctx.note(SECTION, "  Current user lacks access — add yourself to 'video' or 'render' group")

    if len(nodes) > 1:
        ctx.flag(SECTION, Classification.WARN, f"Multiple render nodes detected ({len(nodes)} GPUs)",
                 "If VAAPI selects the wrong GPU, set NVD_GPU=<cuda_index> in /etc/environment")
        _check_nvd_gpu(resolver, ctx)

    groups = user_groups(host.user, resolver)
    if groups is None:
        ctx.note(SECTION, f"User ({host.user}) groups: (unknown)")
        return
    ctx.note(SECTION, f"User ({host.user}) groups: {' '.join(groups)}")
    for g in REQUIRED_GROUPS:
        if g in groups:
            ctx.flag(SECTION, Classification.OK, f"{host.user} is a member of '{g}'")
        else:
            ctx.flag(SECTION, Classification.FAIL, f"{host.user} is not a member of '{g}'",
                     f"sudo usermod -aG {g} {host.user} (then log out/in)")
