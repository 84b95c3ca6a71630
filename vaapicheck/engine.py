"""Check engine — runs every report section in order against one host."""

import logging

from .config import Settings
from .context import RunContext
from .models import HostProfile
from .resolver import FactResolver
from .rules.base import Classification
from .sections import (
    environment,
    firefox_prefs,
    live_decode,
    nvidia_driver,
    render_nodes,
    summary,
    system_info,
    vaapi_driver,
    vaapi_support,
)

logger = logging.getLogger(__name__)

# Order matters: later sections read facts earlier ones leave on the context
# (nvd_path, pre_ampere, vaapi_ok, nvidia_render_node).
SECTIONS = [
    system_info,
    nvidia_driver,
    vaapi_driver,
    vaapi_support,
    environment,
    firefox_prefs,
    render_nodes,
    live_decode,
    summary,
]


def run_checks(host: HostProfile, resolver: FactResolver, settings: Settings) -> RunContext:
    """Run all sections and return the accumulated context."""
    ctx = RunContext()
    for section in SECTIONS:
        logger.debug("Running section %s", section.SECTION)
        try:
            section.check(host, resolver, ctx, settings)
        except Exception:
            logger.exception("Section %s failed", section.SECTION)
            ctx.flag(section.SECTION, Classification.WARN, "Section could not complete",
                     "Re-run with --verbose for details")
    return ctx
