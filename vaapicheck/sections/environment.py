"""Environment variables — live values, persisted config files, conflicts."""

from ..config import Settings
from ..conflicts import detect_conflicts
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification
from ..rules.evaluate import evaluate
from ..rules.registry import Applicability, applicable, env_var_names

SECTION = "ENVIRONMENT VARIABLES"


def applicability(host: HostProfile, ctx: RunContext) -> Applicability:
    return Applicability(
        session_type=host.session_type,
        firefox_major=host.firefox_major,
        driver_major=host.nvidia_driver_major,
        nvd_installed=ctx.nvd_installed,
    )


def _source_hygiene(resolver: FactResolver, ctx: RunContext) -> None:
    pam = str(resolver.home / ".pam_environment")
    bashrc = str(resolver.home / ".bashrc")
    if pam in resolver.hits:
        ctx.flag(SECTION, Classification.WARN,
                 "~/.pam_environment is disabled by default on Ubuntu 22.04+ (CVE-2010-4708) and may not be read",
                 "Move these variables to /etc/environment or ~/.config/environment.d/")
    libva_sources = ctx.sources.get("LIBVA_DRIVER_NAME", [])
    if libva_sources == [bashrc]:
        ctx.flag(SECTION, Classification.WARN,
                 "LIBVA_DRIVER_NAME is set only in ~/.bashrc",
                 "~/.bashrc is not read by GUI-launched applications; move to /etc/environment or ~/.profile")


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    checks = settings.env_checks
    resolver.scan_env_sources(env_var_names(checks), ctx)
    appl = applicability(host, ctx)

    inactive = []
    for d in checks:
        fact = resolver.resolve_env(d.name)
        ok, label = applicable(d.name, appl)
        evaluate(SECTION, d, fact, ctx, ok, label)
        if ok and not fact.is_set and fact.persisted_value is not None:
            inactive.append(fact)

    for fact in inactive:
        ctx.flag(SECTION, Classification.INFO,
                 f"{fact.name} is configured in {fact.persisted_source} but not active in this shell",
                 "Log out and back in (or re-source the config file) for the change to take effect")

    if resolver.hits:
        ctx.note(SECTION, "Env var sources:")
        for path, found in resolver.hits.items():
            ctx.note(SECTION, f"  {path}:")
            for a in found:
                ctx.note(SECTION, f"    {a.line}")

    _source_hygiene(resolver, ctx)
    for outcome in detect_conflicts(ctx.sources, SECTION):
        ctx.emit(outcome)
