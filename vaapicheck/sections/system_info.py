"""System info — kernel, session, GPUs, Firefox install."""

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification

SECTION = "SYSTEM INFO"


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    if host.via_sudo:
        ctx.note(SECTION, f"Note: Running as root (sudo) — using {host.user}'s profile and groups")
    ctx.note(SECTION, f"Kernel:          {host.kernel}")
    ctx.note(SECTION, f"Display Server:  {host.session_type}")
    ctx.note(SECTION, f"Desktop:         {host.desktop}")
    ctx.note(SECTION, "GPU(s):")
    if host.gpus:
        for gpu in host.gpus:
            ctx.note(SECTION, f"  {gpu}")
    else:
        ctx.note(SECTION, "  (lspci not found or no display controllers — install pciutils)")

    if not host.firefox_path:
        ctx.flag(SECTION, Classification.FAIL, "Firefox not found in PATH")
        return

    ctx.note(SECTION, f"Firefox Path:    {host.firefox_path} -> {host.firefox_real_path}")
    ctx.note(SECTION, f"Firefox Version: {host.firefox_version or 'unknown'}")
    if host.firefox_major is None:
        ctx.flag(
            SECTION, Classification.WARN,
            f"Could not determine Firefox major version from '{host.firefox_version or ''}'",
            "Version-dependent checks are evaluated as if Firefox were older than 137",
        )

    package = host.firefox_package or "unknown"
    if package == "snap":
        ctx.note(SECTION, "Package Type:    Snap (may have VAAPI sandbox issues)")
    elif package == "deb" and host.firefox_package_source:
        ctx.note(SECTION, f"Package Type:    deb (source: {host.firefox_package_source})")
    else:
        ctx.note(SECTION, f"Package Type:    {package}")
    if package == "flatpak":
        ctx.flag(
            SECTION, Classification.WARN,
            "Firefox is installed as a Flatpak — sandbox may restrict VAAPI access",
            "Check Flatpak permissions: flatpak override --user --show org.mozilla.firefox",
        )
