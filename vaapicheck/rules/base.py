"""Base types for checks."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..models import ResolvedFact, _Marker


class Severity(str, Enum):
    CRITICAL = "critical"
    ADVISORY = "advisory"


class Classification(str, Enum):
    OK = "OK"
    INFO = "INFO"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class CheckDefinition:
    """Declarative description of one setting and its known-good value."""

    name: str
    expected: Union[str, _Marker]
    severity: Severity = Severity.ADVISORY
    fallback: Optional[str] = None  # None = fallback unknown
    description: str = ""
    hint: str = ""  # remediation when the check does not pass

    @property
    def critical(self) -> bool:
        return self.severity == Severity.CRITICAL


@dataclass(frozen=True)
class CheckOutcome:
    """One classified line of the report."""

    section: str
    classification: Classification
    message: str
    hint: str = ""
    definition: Optional[CheckDefinition] = None
    fact: Optional[ResolvedFact] = None
    display_value: str = ""  # effective value as shown in a settings table
    display_source: str = ""
    detail: str = ""  # free text shown under the message (command output etc.)

    @property
    def name(self) -> str:
        return self.definition.name if self.definition else ""
