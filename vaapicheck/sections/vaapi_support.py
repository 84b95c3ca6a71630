"""VA-API system support — vainfo and installed VA drivers."""

from typing import Optional

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification
from ..scanner.commands import CommandResult, have
from ..scanner.packages import PackageNames, install_hint, installed_va_drivers

SECTION = "VAAPI SYSTEM SUPPORT"

NVIDIA_VAINFO_ENV = {"LIBVA_DRIVER_NAME": "nvidia", "NVD_BACKEND": "direct"}
_SUMMARY_MARKERS = ("vainfo:", "Driver version", "supported profile")


def _summary(output: str) -> str:
    return "\n".join(ln for ln in output.splitlines() if any(m in ln for m in _SUMMARY_MARKERS))


def classify_vainfo(r: CommandResult, label: str, timeout: float) -> tuple[Classification, str, str]:
    """(classification, message, detail) for one vainfo run."""
    if r.timed_out:
        return (Classification.WARN,
                f"vainfo{label} timed out after {timeout:g}s — GPU driver may be in a bad state", "")
    if r.ok:
        return Classification.OK, f"vainfo{label} succeeded", _summary(r.stdout)
    return Classification.FAIL, f"vainfo{label} failed (exit code {r.exit_code})", r.stdout.strip()


def _vainfo(resolver: FactResolver, ctx: RunContext, label: str, env: Optional[dict] = None) -> Optional[bool]:
    r = resolver.run("vainfo", [], env=env, merge_stderr=True)
    if r.missing:
        return None
    cls, message, detail = classify_vainfo(r, label, resolver.timeout)
    ctx.flag(SECTION, cls, message, detail=detail)
    return cls == Classification.OK


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    ok = _vainfo(resolver, ctx, " (system default driver)")
    if ok is None:
        ctx.flag(SECTION, Classification.FAIL, "vainfo not installed",
                 install_hint(PackageNames("vainfo", "libva-utils", "libva-utils"), have))
    else:
        ctx.vaapi_ok = ok
        if ctx.nvd_installed:
            # Only LIBVA_DRIVER_NAME/NVD_BACKEND are set here; Firefox may see a
            # different environment, so a failure may not reproduce in the browser.
            _vainfo(resolver, ctx, " with LIBVA_DRIVER_NAME=nvidia", NVIDIA_VAINFO_ENV)

    ctx.note(SECTION, "Installed VA-API drivers:")
    drivers = installed_va_drivers(resolver.runner)
    if drivers:
        for d in drivers:
            ctx.note(SECTION, f"  {d}")
    else:
        ctx.note(SECTION, "  No VA-API drivers found!")
