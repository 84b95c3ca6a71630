"""Firefox preferences — per-profile battery with cross-checks."""

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification
from ..rules.crosscheck import apply_cross_checks
from ..rules.evaluate import build_outcome
from ..rules.registry import applicable
from ..scanner import firefox
from .environment import applicability

SECTION = "FIREFOX PREFERENCES"


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    profiles = firefox.find_profiles(resolver.home)
    if not profiles:
        ctx.flag(SECTION, Classification.INFO, "No Firefox profiles found")
        return

    if firefox.is_running(host.user, resolver.runner):
        ctx.flag(SECTION, Classification.WARN,
                 "Firefox is currently running — prefs.js may be stale; "
                 "changes in about:config won't persist until restart")

    appl = applicability(host, ctx)
    checked = 0
    for profile in profiles:
        if not profile.path.is_dir() or not profile.matches(settings.profile):
            continue
        checked += 1
        ctx.note(SECTION, f"Profile: {profile.path.name}" + (f" ({profile.name})" if profile.name else ""))
        ctx.note(SECTION, f"Path:    {profile.path}")
        if not profile.prefs_js.is_file() and not profile.user_js.is_file():
            ctx.flag(SECTION, Classification.INFO,
                     "No prefs.js or user.js found (profile may not have been used yet)")
            continue

        battery = []
        for d in settings.pref_checks:
            ok, label = applicable(d.name, appl)
            battery.append(build_outcome(SECTION, d, resolver.resolve_pref(profile, d.name), ok, label))
        for outcome in apply_cross_checks(battery, ctx.pre_ampere, host.nvidia_gpu_name or ""):
            ctx.emit(outcome)

    if checked == 0 and settings.profile:
        ctx.flag(SECTION, Classification.INFO, f"No Firefox profile matches '{settings.profile}'")
