"""Summary — recap of facts gathered by earlier sections."""

import os

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification

SECTION = "SUMMARY"


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    # Display only; vainfo was already counted in its own section.
    if ctx.vaapi_ok:
        ctx.note(SECTION, "✔ VAAPI working at system level")
    else:
        ctx.note(SECTION, "✘ VAAPI not working at system level — fix drivers first (see above)")

    # Live session values only; persisted settings are reported by the environment section.
    if host.session_type == "x11" and resolver.resolve_env("MOZ_X11_EGL").value != "1":
        ctx.flag(SECTION, Classification.FAIL, "On X11 but MOZ_X11_EGL is not set",
                 "export MOZ_X11_EGL=1 (add to /etc/environment)")
    elif host.session_type == "wayland" and resolver.resolve_env("MOZ_ENABLE_WAYLAND").value != "1":
        ctx.flag(SECTION, Classification.WARN, "On Wayland but MOZ_ENABLE_WAYLAND is not set (may auto-detect)",
                 "export MOZ_ENABLE_WAYLAND=1 if Firefox runs under XWayland")

    if host.firefox_is_snap:
        ctx.flag(SECTION, Classification.WARN,
                 "Firefox is a Snap — consider switching to .deb for better VAAPI support")

    node = ctx.nvidia_render_node
    if not node:
        ctx.flag(SECTION, Classification.FAIL, "No NVIDIA render node detected in /dev/dri/",
                 "Check that nvidia kernel modules are loaded: lsmod | grep nvidia")
    elif not os.access(node, os.R_OK | os.W_OK):
        ctx.flag(SECTION, Classification.FAIL, f"No access to {node}",
                 f"Add yourself to the 'render' and 'video' groups: sudo usermod -aG render,video {host.user}")
    else:
        ctx.flag(SECTION, Classification.OK, f"NVIDIA render node {node} accessible")
