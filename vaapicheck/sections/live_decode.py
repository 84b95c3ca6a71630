"""Live decode — is NVDEC busy, and is Firefox on the GPU right now."""

from typing import NamedTuple, Optional

from ..config import Settings
from ..context import RunContext
from ..models import HostProfile
from ..resolver import FactResolver
from ..rules.base import Classification

SECTION = "LIVE DECODE CHECK"


class PmonRow(NamedTuple):
    pid: str
    type: str
    command: str


def parse_pmon(output: str) -> list[PmonRow]:
    """`nvidia-smi pmon -c 1` rows. Header lines start with '#'; command is the last column."""
    rows = []
    for ln in output.splitlines():
        parts = ln.split()
        if not parts or ln.lstrip().startswith("#") or len(parts) < 4:
            continue
        rows.append(PmonRow(parts[1], parts[2], parts[-1]))
    return rows


def decoder_utilization(output: str) -> Optional[int]:
    first = output.strip().splitlines()[0].strip() if output.strip() else ""
    return int(first) if first.isdigit() else None


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    if not host.nvidia_smi:
        ctx.note(SECTION, "nvidia-smi not available — cannot check live decode status")
        return

    r = resolver.run("nvidia-smi", ["--query-gpu=utilization.decoder", "--format=csv,noheader,nounits"])
    util = decoder_utilization(r.stdout) if r.ok else None
    if util:
        ctx.flag(SECTION, Classification.OK, f"NVDEC decoder is active ({util}% utilization)")
    else:
        ctx.note(SECTION, f"Decoder utilization: {util or 0}% (play a video and re-run to test)")

    r = resolver.run("nvidia-smi", ["pmon", "-c", "1"])
    rows = parse_pmon(r.stdout) if r.ok else []
    firefox_pids = [row.pid for row in rows if row.command.startswith("firefox")]
    if firefox_pids:
        ctx.flag(SECTION, Classification.OK, f"Firefox processes on GPU: {','.join(firefox_pids)}")
    else:
        ctx.note(SECTION, "No Firefox processes detected on GPU (is Firefox running with video?)")

    rdd = next((row for row in rows if row.command == "rdd"), None)
    if rdd:
        ctx.flag(SECTION, Classification.OK, f"RDD process on GPU (type: {rdd.type})")
