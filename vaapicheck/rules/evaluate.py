"""Evaluator — classify a resolved setting against its definition."""

from ..context import RunContext
from ..models import SOURCE_BUILTIN, VARIES, FactStatus, ResolvedFact
from .base import CheckDefinition, CheckOutcome, Classification

NOT_APPLICABLE = "not applicable"

# Notes appended to the hint when a value could not be resolved
_STATUS_NOTES = {
    FactStatus.DENIED: "could not verify (permission denied)",
    FactStatus.TIMED_OUT: "could not verify (query timed out)",
    FactStatus.MALFORMED: "could not evaluate (unparsable value)",
    FactStatus.FAILED: "could not verify (query failed)",
}


def classify(definition: CheckDefinition, fact: ResolvedFact, applicable: bool = True) -> Classification:
    """
    Pure classification of one setting.
    Depends only on value, expected, severity, fallback and applicability.
    """
    if not applicable:
        return Classification.INFO
    varies = definition.expected is VARIES
    if not fact.is_set:
        if varies:
            return Classification.INFO
        if definition.fallback is not None and definition.fallback == definition.expected:
            return Classification.OK
        if definition.critical:
            return Classification.WARN
        return Classification.INFO
    if varies:
        return Classification.INFO
    if fact.value == definition.expected:
        return Classification.OK
    return Classification.FAIL if definition.critical else Classification.WARN


def _display(definition: CheckDefinition, fact: ResolvedFact, applicable: bool, label: str) -> tuple[str, str]:
    """Effective value and source as shown in a settings table."""
    if not applicable:
        return (f"({label})" if label else NOT_APPLICABLE), "N/A"
    if fact.is_set:
        return fact.value, fact.source
    if definition.expected is VARIES:
        return "<unset>", ""
    if definition.fallback is not None and (definition.fallback == definition.expected or definition.critical):
        return f"(default: {definition.fallback})", SOURCE_BUILTIN
    if definition.critical:
        return "(default: unknown)", SOURCE_BUILTIN
    return "<unset>", ""


def _message(definition: CheckDefinition, fact: ResolvedFact, cls: Classification, applicable: bool, label: str) -> str:
    name = definition.name
    if not applicable:
        return f"{name}: {NOT_APPLICABLE}" + (f" ({label})" if label else "")
    if not fact.is_set:
        if cls == Classification.OK:
            return f"{name} not set; built-in default {definition.fallback} is correct"
        if fact.persisted_value is not None:
            return f"{name} is not active in this session (configured in {fact.persisted_source})"
        if definition.fallback is None:
            return f"{name} is not set (default: unknown)"
        return f"{name} is not set (default: {definition.fallback})"
    if definition.expected is VARIES:
        return f"{name} = {fact.value}"
    if cls == Classification.OK:
        return f"{name} = {fact.value}"
    return f"{name} = {fact.value} (expected {definition.expected})"


def _hint(definition: CheckDefinition, fact: ResolvedFact, cls: Classification) -> str:
    if cls not in (Classification.WARN, Classification.FAIL):
        return ""
    parts = []
    note = _STATUS_NOTES.get(fact.status)
    if note:
        parts.append(note)
    if not fact.is_set and fact.persisted_value is not None:
        parts.append("Log out and back in (or re-source the config file) for the change to take effect")
    elif definition.hint:
        parts.append(definition.hint)
    return "; ".join(parts)


def build_outcome(
    section: str,
    definition: CheckDefinition,
    fact: ResolvedFact,
    applicable: bool = True,
    label: str = "",
) -> CheckOutcome:
    """Classify without emitting — used when cross-checks may still replace it."""
    cls = classify(definition, fact, applicable)
    value, source = _display(definition, fact, applicable, label)
    return CheckOutcome(
        section=section,
        classification=cls,
        message=_message(definition, fact, cls, applicable, label),
        hint=_hint(definition, fact, cls),
        definition=definition,
        fact=fact,
        display_value=value,
        display_source=source,
    )


def evaluate(
    section: str,
    definition: CheckDefinition,
    fact: ResolvedFact,
    ctx: RunContext,
    applicable: bool = True,
    label: str = "",
) -> CheckOutcome:
    """Classify one setting and emit the outcome into the run context."""
    return ctx.emit(build_outcome(section, definition, fact, applicable, label))
