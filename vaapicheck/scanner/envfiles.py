"""Scan shell / environment.d / pam files for variable assignments."""

import logging
import re
from pathlib import Path
from typing import Iterable, NamedTuple

logger = logging.getLogger(__name__)


class Assignment(NamedTuple):
    name: str
    value: str
    path: str
    line: str


def _pattern(names: Iterable[str], allow_export: bool) -> re.Pattern:
    alternation = "|".join(re.escape(n) for n in names)
    prefix = r"(?:export\s+)?" if allow_export else ""
    return re.compile(rf"^{prefix}({alternation})=(.*)$")


_TRAILING_COMMENT = re.compile(r"\s+#.*$")


def _unquote(value: str) -> str:
    """Shell-style value: quoted text up to the closing quote, else strip a trailing ` # comment`."""
    value = value.strip()
    if value and value[0] in "\"'":
        end = value.find(value[0], 1)
        if end > 0:
            return value[1:end]
    return _TRAILING_COMMENT.sub("", value)


def scan_env_file(path: Path, names: Iterable[str], allow_export: bool = True) -> list[Assignment]:
    """
    Every assignment to one of `names` in `path`, top to bottom.
    Shell files accept `export NAME=value`; environment.d files only bare `NAME=value`.
    A missing or unreadable file yields no assignments.
    """
    names = tuple(names)
    if not names:
        return []
    try:
        text = Path(path).read_text(errors="replace")
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
        return []
    pat = _pattern(names, allow_export)
    found = []
    for raw in text.splitlines():
        m = pat.match(raw)
        if m:
            found.append(Assignment(m.group(1), _unquote(m.group(2)), str(path), raw))
    return found


def sorted_glob(directory: Path, pattern: str) -> list[Path]:
    """Files in directory matching pattern, in directory (sorted) order."""
    try:
        return sorted(p for p in Path(directory).glob(pattern) if p.is_file())
    except OSError as e:
        logger.debug("Could not list %s: %s", directory, e)
        return []
