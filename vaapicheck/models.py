"""Structured facts about the host and about individual settings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# A setting absent from every source.
UNSET = None


class _Marker(Enum):
    VARIES = "varies"

    def __str__(self) -> str:
        return self.value


# Expected value for settings with no single correct value.
VARIES = _Marker.VARIES


class FactStatus(str, Enum):
    """How a resolution attempt ended."""

    OK = "ok"
    UNSET = "unset"
    DENIED = "denied"
    NOT_FOUND = "not-found"
    TIMED_OUT = "timed-out"
    MALFORMED = "malformed"
    FAILED = "failed"


# Closed set of non-file source labels. File sources use the file path.
SOURCE_ENVIRONMENT = "environment"
SOURCE_BUILTIN = "built-in"
SOURCE_PREFS_JS = "prefs.js"
SOURCE_USER_JS = "user.js"
SOURCE_SYSFS = "sysfs"
SOURCE_SYSFS_SUDO = "sysfs (sudo)"
SOURCE_CMDLINE = "/proc/cmdline"


@dataclass(frozen=True)
class ResolvedFact:
    """Result of resolving one setting."""

    name: str
    value: Optional[str] = UNSET
    source: str = ""
    status: FactStatus = FactStatus.UNSET
    # Value written in a config file but not active in the live environment
    persisted_value: Optional[str] = None
    persisted_source: str = ""

    @property
    def is_set(self) -> bool:
        return self.value is not UNSET


@dataclass
class HostProfile:
    """Facts primed once at the start of a run."""

    user: str = ""
    home: str = ""
    via_sudo: bool = False  # root via sudo, inspecting SUDO_USER's profile
    kernel: str = ""
    session_type: str = "unknown"  # "wayland", "x11", "tty", "unknown"
    desktop: str = "unknown"
    gpus: list[str] = field(default_factory=list)  # lspci -nn VGA/3D/Display lines

    firefox_path: Optional[str] = None
    firefox_real_path: Optional[str] = None
    firefox_version: Optional[str] = None  # "Mozilla Firefox 128.0"
    firefox_major: Optional[int] = None
    firefox_package: Optional[str] = None  # snap, deb, rpm, flatpak, unknown
    firefox_package_source: Optional[str] = None  # apt origin for deb installs

    nvidia_smi: bool = False
    nvidia_smi_status: FactStatus = FactStatus.OK
    nvidia_gpu_name: Optional[str] = None
    nvidia_driver_version: Optional[str] = None

    @property
    def nvidia_driver_major(self) -> Optional[int]:
        if not self.nvidia_driver_version:
            return None
        head = self.nvidia_driver_version.split(".", 1)[0]
        return int(head) if head.isdigit() else None

    @property
    def firefox_is_snap(self) -> bool:
        return self.firefox_package == "snap"
