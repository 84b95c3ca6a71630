"""Terminal output formatting — section dividers, icons, settings tables, verdict."""

import shutil
from typing import Any, Dict, List, Optional

import click

from .context import Note, RunContext, RunCounters
from .rules.base import CheckOutcome, Classification

VERDICT_CLEAN = "clean"
VERDICT_WARNINGS = "warnings only"
VERDICT_ISSUES = "issues present"

LOG_TIP = 'NVD_LOG=1 MOZ_LOG="PlatformDecoderModule:5" firefox 2>&1 | tee /tmp/ff-vaapi.log'

_ICONS = {
    Classification.OK: ("✔", "green"),
    Classification.INFO: ("●", "cyan"),
    Classification.WARN: ("!", "yellow"),
    Classification.FAIL: ("✘", "red"),
}
_NOT_APPLICABLE_ICON = "–"
_NAME_WIDTH = 34


def verdict(counters: RunCounters) -> str:
    """Terminal verdict. A function of the two counters only."""
    if counters.issues == 0 and counters.warnings == 0:
        return VERDICT_CLEAN
    if counters.issues == 0:
        return VERDICT_WARNINGS
    return VERDICT_ISSUES


def _get_width() -> int:
    try:
        return max(72, min(100, shutil.get_terminal_size((80, 24)).columns))
    except OSError:
        return 80


def _wrap(text: str, indent: int = 0, width: int = 80) -> List[str]:
    """Wrap text to width, first line has indent, following lines +2."""
    prefix = " " * indent
    extra = "  "
    lines = []
    rest = text
    first = True
    while rest:
        max_len = width - (indent if first else indent + len(extra))
        if len(rest) <= max_len:
            lines.append(prefix + rest)
            break
        break_at = rest.rfind(" ", 0, max_len + 1)
        if break_at <= 0:
            break_at = max_len
        chunk = rest[:break_at].strip()
        rest = rest[break_at:].strip()
        lines.append(prefix + chunk)
        prefix = " " * indent + extra
        first = False
    return lines


class _Styler:
    """click.style, or plain text when color is off."""

    def __init__(self, color: bool) -> None:
        self.color = color

    def __call__(self, text: str, **kwargs: Any) -> str:
        return click.style(text, **kwargs) if self.color else text


def _sections(ctx: RunContext) -> Dict[str, List[Any]]:
    """Entries grouped by section, in first-appearance order."""
    grouped: Dict[str, List[Any]] = {}
    for e in ctx.entries:
        grouped.setdefault(e.section, []).append(e)
    return grouped


def _outcome_lines(o: CheckOutcome, style: _Styler, width: int) -> List[str]:
    icon, fg = _ICONS[o.classification]
    if o.display_source == "N/A":
        icon, fg = _NOT_APPLICABLE_ICON, None
    lines = []
    if o.definition is not None:
        row = f"{o.name:<{_NAME_WIDTH}} {o.display_value}"
        if o.display_source and o.display_source != "N/A":
            row += f"  [{o.display_source}]"
        lines.append("  " + style(icon, fg=fg) + " " + row)
        if o.classification in (Classification.WARN, Classification.FAIL):
            for ln in _wrap(o.message, indent=4, width=width):
                lines.append(style(ln, fg=fg))
    else:
        wrapped = _wrap(o.message, indent=4, width=width) or [""]
        lines.append("  " + style(icon, fg=fg) + " " + wrapped[0].lstrip())
        lines.extend(wrapped[1:])
    if o.hint:
        label = "Fix: " if o.classification == Classification.FAIL else "Hint: "
        for ln in _wrap(label + o.hint, indent=4, width=width):
            lines.append(style(ln, dim=True))
    for ln in o.detail.splitlines():
        lines.append(style("      " + ln.strip(), dim=True))
    return lines


def _final_message(counters: RunCounters, style: _Styler) -> List[str]:
    v = verdict(counters)
    if v == VERDICT_CLEAN:
        return ["  " + style("All checks passed!", fg="green", bold=True)]
    lines = []
    if v == VERDICT_WARNINGS:
        lines.append("  " + style(f"Found {counters.warnings} warning(s), no critical issues.", fg="yellow"))
    else:
        lines.append("  " + style(f"Found {counters.issues} critical issue(s)", fg="red", bold=True)
                     + " and " + style(f"{counters.warnings} warning(s).", fg="yellow"))
        lines.append("  Fix the " + style("✘", fg="red") + " items above first, then re-run.")
    lines.append("")
    lines.append("  " + style("Tip:", fg="cyan") + " To test with full logging, run:")
    lines.append(f"    {LOG_TIP}")
    return lines


def format_human(ctx: RunContext, color: bool = True, title: Optional[str] = None) -> str:
    """Build the human terminal report as a single string."""
    style = _Styler(color)
    width = _get_width()
    lines = []

    lines.append("┌" + "─" * (width - 2) + "┐")
    lines.append(" " + (title or "Firefox + NVIDIA VA-API diagnostics"))
    lines.append("└" + "─" * (width - 2) + "┘")

    for section, entries in _sections(ctx).items():
        lines.append("")
        lines.append(style(f"── {section} " + "─" * max(0, width - len(section) - 4), bold=True))
        for e in entries:
            if isinstance(e, Note):
                lines.append("  " + e.text)
            else:
                lines.extend(_outcome_lines(e, style, width))

    lines.append("")
    lines.append("─" * width)
    lines.extend(_final_message(ctx.counters, style))
    lines.append("")
    return "\n".join(lines)


def outcome_dict(o: CheckOutcome) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "section": o.section,
        "classification": o.classification.value,
        "message": o.message,
    }
    if o.definition is not None:
        d["name"] = o.name
        d["severity"] = o.definition.severity.value
        d["expected"] = str(o.definition.expected)
        d["value"] = o.fact.value if o.fact is not None else None
        d["source"] = o.display_source
    if o.hint:
        d["hint"] = o.hint
    if o.detail:
        d["detail"] = o.detail
    return d


def format_json(ctx: RunContext) -> Dict[str, Any]:
    """Machine-readable report: outcomes, notes, counters and verdict."""
    return {
        "verdict": verdict(ctx.counters),
        "issues": ctx.counters.issues,
        "warnings": ctx.counters.warnings,
        "results": [outcome_dict(o) for o in ctx.outcomes],
        "notes": [{"section": e.section, "text": e.text} for e in ctx.entries if isinstance(e, Note)],
    }
