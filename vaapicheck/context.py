"""Run context — counters, emitted outcomes and state shared between sections."""

from dataclasses import dataclass, field
from typing import Optional, Union

from .rules.base import CheckOutcome, Classification

# setting name -> distinct source files, in scan order
SourceRecord = dict[str, list[str]]


@dataclass
class RunCounters:
    issues: int = 0
    warnings: int = 0


@dataclass(frozen=True)
class Note:
    """Unclassified display line (system facts, command output)."""

    section: str
    text: str


@dataclass
class RunContext:
    """Everything a single run accumulates. Owned by the main thread."""

    counters: RunCounters = field(default_factory=RunCounters)
    entries: list[Union[CheckOutcome, Note]] = field(default_factory=list)
    sources: SourceRecord = field(default_factory=dict)

    # Facts later sections depend on
    nvd_path: Optional[str] = None
    vaapi_ok: bool = False
    libva_version: Optional[str] = None
    pre_ampere: bool = False
    nvidia_render_node: Optional[str] = None

    @property
    def nvd_installed(self) -> bool:
        return self.nvd_path is not None

    @property
    def outcomes(self) -> list[CheckOutcome]:
        return [e for e in self.entries if isinstance(e, CheckOutcome)]

    def emit(self, outcome: CheckOutcome) -> CheckOutcome:
        """Record an outcome. The only place counters change."""
        if outcome.classification == Classification.FAIL:
            self.counters.issues += 1
        elif outcome.classification == Classification.WARN:
            self.counters.warnings += 1
        self.entries.append(outcome)
        return outcome

    def flag(
        self,
        section: str,
        classification: Classification,
        message: str,
        hint: str = "",
        detail: str = "",
    ) -> CheckOutcome:
        """Emit an ad-hoc outcome that has no registry definition."""
        return self.emit(CheckOutcome(
            section=section,
            classification=classification,
            message=message,
            hint=hint,
            detail=detail,
        ))

    def note(self, section: str, text: str) -> None:
        self.entries.append(Note(section, text))

    def record_source(self, name: str, source: str) -> None:
        """Remember that `name` is assigned in `source`. Duplicates collapse."""
        seen = self.sources.setdefault(name, [])
        if source not in seen:
            seen.append(source)
