"""Firefox profile discovery and prefs.js / user.js parsing."""

import configparser
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .commands import Runner, run_bounded

logger = logging.getLogger(__name__)

# Native, snap and flatpak profile roots, relative to the user's home
PROFILE_ROOTS = (
    ".mozilla/firefox",
    "snap/firefox/common/.mozilla/firefox",
    ".var/app/org.mozilla.firefox/.mozilla/firefox",
)

_VALUE = r'"[^"]*"|true|false|-?\d+'


@dataclass(frozen=True)
class Profile:
    path: Path
    name: str = ""

    @property
    def prefs_js(self) -> Path:
        return self.path / "prefs.js"

    @property
    def user_js(self) -> Path:
        return self.path / "user.js"

    def matches(self, needle: Optional[str]) -> bool:
        """Case-insensitive substring match on directory name or profiles.ini Name=."""
        if not needle:
            return True
        needle = needle.lower()
        return needle in self.path.name.lower() or needle in self.name.lower()


def parse_profiles_ini(ini_path: Path) -> list[Profile]:
    """Profiles listed in a profiles.ini, paths resolved against IsRelative."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read(ini_path, encoding="utf-8")
    except configparser.Error as e:
        logger.debug("Could not parse %s: %s", ini_path, e)
        return []
    base = ini_path.parent
    profiles = []
    for section in parser.sections():
        if not section.startswith("Profile"):
            continue
        sec = parser[section]
        raw = sec.get("Path")
        if not raw:
            continue
        relative = sec.get("IsRelative", "1") != "0" and not raw.startswith("/")
        profiles.append(Profile(base / raw if relative else Path(raw), sec.get("Name", "")))
    return profiles


def find_profiles(home: Path) -> list[Profile]:
    profiles = []
    for rel in PROFILE_ROOTS:
        ini = home / rel / "profiles.ini"
        if ini.is_file():
            profiles.extend(parse_profiles_ini(ini))
    return profiles


def read_pref(path: Path, pref: str) -> Optional[str]:
    """Last `user_pref("pref", value)` in the file, raw literal. None when absent."""
    try:
        text = path.read_text(errors="replace")
    except OSError:
        return None
    pat = re.compile(rf'user_pref\("{re.escape(pref)}",\s*({_VALUE})')
    values = pat.findall(text)
    return values[-1] if values else None


def read_version(real_path: Optional[str], runner: Runner = run_bounded) -> Optional[str]:
    """'Mozilla Firefox X.Y' from application.ini next to the binary, else --version."""
    if real_path:
        ini = Path(real_path).parent / "application.ini"
        try:
            for ln in ini.read_text(errors="replace").splitlines():
                if ln.startswith("Version="):
                    ver = ln.split("=", 1)[1].strip()
                    if ver:
                        return f"Mozilla Firefox {ver}"
        except OSError:
            pass
    r = runner("firefox", ["--version"])
    if not r.ok:
        return None
    return r.stdout.strip() or None


def major_version(version_str: Optional[str]) -> Optional[int]:
    """First integer in the version string, None when there is none."""
    if not version_str:
        return None
    m = re.search(r"\d+", version_str)
    return int(m.group(0)) if m else None


def is_running(user: str, runner: Runner = run_bounded) -> bool:
    for exe in ("firefox", "firefox-esr"):
        if runner("pgrep", ["-u", user, "-x", exe]).ok:
            return True
    return False
