"""Cross-checks — run after a preference battery, may replace single outcomes."""

from dataclasses import replace
from typing import Optional

from .base import CheckOutcome, Classification

RDD_PREF = "media.rdd-process.enabled"
AV1_PREF = "media.av1.enabled"


def _effective(outcome: CheckOutcome) -> Optional[str]:
    if outcome.fact is None or not outcome.fact.is_set:
        return None
    return outcome.fact.value


def check_rdd_disabled(outcome: CheckOutcome, pre_ampere: bool, gpu_name: str) -> CheckOutcome:
    """The RDD process hosts the decoder; explicitly disabling it always fails."""
    if _effective(outcome) != "false":
        return outcome
    return replace(
        outcome,
        classification=Classification.FAIL,
        message=f"CRITICAL: {RDD_PREF} is FALSE",
        hint="VA-API decoding CANNOT work without the RDD process — set to true in about:config immediately",
    )


def check_av1_pre_ampere(outcome: CheckOutcome, pre_ampere: bool, gpu_name: str) -> CheckOutcome:
    """AV1 on pre-Ampere NVIDIA falls back to software decode; downgrade to WARN."""
    if not pre_ampere or _effective(outcome) == "false":
        return outcome
    return replace(
        outcome,
        classification=Classification.WARN,
        message=f"{AV1_PREF} is true but NVDEC AV1 hardware decode requires Ampere (RTX 30xx+)",
        hint=(
            f"AV1 will fall back to software decode on {gpu_name or 'this GPU'} — "
            "this is expected on pre-Ampere hardware"
        ),
    )


CROSS_CHECKS = {
    RDD_PREF: check_rdd_disabled,
    AV1_PREF: check_av1_pre_ampere,
}


def apply_cross_checks(outcomes: list[CheckOutcome], pre_ampere: bool, gpu_name: str = "") -> list[CheckOutcome]:
    """Return the battery with cross-checked outcomes replaced."""
    result = []
    for o in outcomes:
        fn = CROSS_CHECKS.get(o.name)
        result.append(fn(o, pre_ampere, gpu_name) if fn else o)
    return result
