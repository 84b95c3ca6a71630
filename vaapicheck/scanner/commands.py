"""Bounded subprocess invocation — never raises, maps failures to exit codes."""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
EXIT_TIMED_OUT = 124  # same convention as coreutils timeout(1)
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def timed_out(self) -> bool:
        return self.exit_code == EXIT_TIMED_OUT

    @property
    def missing(self) -> bool:
        return self.exit_code == EXIT_NOT_FOUND


Runner = Callable[..., CommandResult]


def run_bounded(
    cmd: str,
    args: Sequence[str] = (),
    timeout: float = DEFAULT_TIMEOUT,
    env: Optional[Mapping[str, str]] = None,
    merge_stderr: bool = False,
) -> CommandResult:
    """Run cmd with args. stdout is returned as text; stderr is dropped unless merged."""
    extra_env = None
    if env:
        extra_env = {**os.environ, **env}
    try:
        result = subprocess.run(
            [cmd, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout,
            env=extra_env,
        )
    except FileNotFoundError:
        logger.debug("Command not found: %s", cmd)
        return CommandResult(EXIT_NOT_FOUND)
    except subprocess.TimeoutExpired:
        logger.debug("Command timed out after %ss: %s", timeout, cmd)
        return CommandResult(EXIT_TIMED_OUT)
    except OSError as e:
        logger.debug("Could not run %s: %s", cmd, e)
        return CommandResult(EXIT_NOT_FOUND)
    return CommandResult(result.returncode, result.stdout or "")


def have(cmd: str) -> bool:
    """True if cmd is on PATH."""
    return shutil.which(cmd) is not None
