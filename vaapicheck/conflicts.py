"""Source-conflict detector — settings assigned in more than one config file."""

from .context import SourceRecord
from .rules.base import CheckOutcome, Classification


def detect_conflicts(record: SourceRecord, section: str) -> list[CheckOutcome]:
    """
    One WARN per setting found in several distinct files.
    Independent of whether the winning value is correct.
    """
    outcomes = []
    for name, sources in record.items():
        distinct = list(dict.fromkeys(sources))
        if len(distinct) < 2:
            continue
        outcomes.append(CheckOutcome(
            section=section,
            classification=Classification.WARN,
            message=f"{name} is defined in multiple config files — values may conflict",
            hint="Defined in: " + ", ".join(distinct),
        ))
    return outcomes
