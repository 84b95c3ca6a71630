"""Check registry — static tables of settings and their known-good values."""

from dataclasses import dataclass
from typing import Callable, Optional

from ..models import VARIES
from .base import CheckDefinition, Severity

CRITICAL = Severity.CRITICAL
ADVISORY = Severity.ADVISORY

# Firefox drops media.ffmpeg.vaapi.enabled (VA-API is on by default) from this major
FF_VAAPI_PREF_REMOVED = 137
# NVD_BACKEND=direct is no longer needed on Wayland from this driver major
NVD_BACKEND_OPTIONAL_DRIVER = 560


def _env_hint(name: str, value: str) -> str:
    return f"Add {name}={value} to /etc/environment or ~/.config/environment.d/*.conf"


# Runtime variables read by Firefox, libva and nvidia-vaapi-driver.
ENV_CHECKS: tuple[CheckDefinition, ...] = (
    CheckDefinition("LIBVA_DRIVER_NAME", "nvidia", CRITICAL, None,
                    "Forces specific VA driver (nvidia, iHD, radeonsi)",
                    _env_hint("LIBVA_DRIVER_NAME", "nvidia")),
    CheckDefinition("NVD_BACKEND", "direct", CRITICAL, None,
                    "nvidia-vaapi-driver backend (EGL backend broken on driver >=525)",
                    _env_hint("NVD_BACKEND", "direct")),
    CheckDefinition("NVD_GPU", VARIES, ADVISORY, None,
                    "CUDA GPU index for multi-GPU systems"),
    CheckDefinition("MOZ_DISABLE_RDD_SANDBOX", "1", CRITICAL, None,
                    "Disables RDD sandbox (may help VAAPI)",
                    _env_hint("MOZ_DISABLE_RDD_SANDBOX", "1") + " (required on some setups)"),
    CheckDefinition("MOZ_X11_EGL", "1", CRITICAL, None,
                    "Enables EGL on X11 (needed for VAAPI on X11)",
                    _env_hint("MOZ_X11_EGL", "1")),
    CheckDefinition("MOZ_ENABLE_WAYLAND", "1", ADVISORY, None,
                    "Enables native Wayland backend",
                    "Usually auto-detected; set MOZ_ENABLE_WAYLAND=1 if Firefox runs under XWayland"),
    CheckDefinition("MOZ_LOG", VARIES, ADVISORY, None, "Logging config (for debugging)"),
    CheckDefinition("NVD_LOG", VARIES, ADVISORY, None, "Enable nvidia-vaapi-driver debug output"),
    CheckDefinition("LIBVA_DRIVERS_PATH", VARIES, ADVISORY, None, "Custom path to VA driver libraries"),
    CheckDefinition("MOZ_GFX_DEBUG", VARIES, ADVISORY, None, "Enables extra gfx debug output"),
    CheckDefinition("EGL_PLATFORM", "wayland", ADVISORY, None, "EGL platform hint"),
    CheckDefinition("GST_VAAPI_ALL_DRIVERS", "1", ADVISORY, None, "Allows all GStreamer VAAPI drivers"),
    CheckDefinition("MOZ_WEBRENDER", "1", ADVISORY, None,
                    "Forces WebRender (legacy; prefer gfx.webrender.all)"),
    CheckDefinition("GBM_BACKEND", "nvidia-drm", ADVISORY, None, "GBM backend for NVIDIA Wayland"),
    CheckDefinition("__GLX_VENDOR_LIBRARY_NAME", "nvidia", ADVISORY, None, "Force NVIDIA GLX vendor"),
    CheckDefinition("__EGL_VENDOR_LIBRARY_FILENAMES", VARIES, ADVISORY, None,
                    "Force NVIDIA EGL vendor lib on multi-vendor EGL systems"),
)


def _pref_hint(name: str, value: str) -> str:
    return f"Set {name} to {value} in about:config"


# Firefox preferences; fallback is Firefox's built-in default.
PREF_CHECKS: tuple[CheckDefinition, ...] = (
    CheckDefinition("media.rdd-process.enabled", "true", CRITICAL, "true",
                    "RDD process hosts VAAPI decoder — MUST be true",
                    _pref_hint("media.rdd-process.enabled", "true")),
    CheckDefinition("media.ffmpeg.vaapi.enabled", "true", CRITICAL, "false",
                    "Master VAAPI switch (required until FF137)",
                    _pref_hint("media.ffmpeg.vaapi.enabled", "true")),
    CheckDefinition("media.hardware-video-decoding.enabled", "true", CRITICAL, "true",
                    "General HW decode switch",
                    _pref_hint("media.hardware-video-decoding.enabled", "true")),
    CheckDefinition("media.hardware-video-decoding.force-enabled", "true", CRITICAL, "false",
                    "Force HW decode even if blocklisted",
                    _pref_hint("media.hardware-video-decoding.force-enabled", "true")),
    CheckDefinition("widget.dmabuf.force-enabled", "true", CRITICAL, "false",
                    "Force DMA-BUF for HW decode buffer sharing",
                    _pref_hint("widget.dmabuf.force-enabled", "true")),
    CheckDefinition("media.rdd-ffmpeg.enabled", "true", ADVISORY, "true", "FFmpeg in RDD process"),
    CheckDefinition("media.ffvpx.enabled", VARIES, ADVISORY, "true",
                    "FFVPX software decoder (disabling may force VAAPI path)"),
    CheckDefinition("media.av1.enabled", "true", ADVISORY, "true", "AV1 codec support"),
    CheckDefinition("media.ffmpeg.enabled", "true", ADVISORY, "true", "FFmpeg integration"),
    CheckDefinition("gfx.webrender.all", "true", ADVISORY, "false", "Force WebRender everywhere"),
    CheckDefinition("gfx.webrender.enabled", "true", ADVISORY, "true", "WebRender enabled"),
    CheckDefinition("gfx.x11-egl.force-enabled", "true", ADVISORY, "false", "Force EGL on X11"),
    CheckDefinition("gfx.canvas.accelerated", "true", ADVISORY, "true", "Accelerated canvas"),
    CheckDefinition("layers.acceleration.force-enabled", "true", ADVISORY, "false",
                    "Force GPU-accelerated layers"),
    CheckDefinition("widget.wayland.opaque-region.enabled", VARIES, ADVISORY, "true",
                    "Wayland opaque region optimization"),
    CheckDefinition("media.navigator.mediadatadecoder_vpx_enabled", VARIES, ADVISORY, "true",
                    "VPX media data decoder"),
    CheckDefinition("media.ffmpeg.low-latency.enabled", VARIES, ADVISORY, "false",
                    "Low-latency FFmpeg decoding"),
    CheckDefinition("media.utility-ffmpeg.enabled", VARIES, ADVISORY, "true",
                    "FFmpeg in Utility process"),
)


@dataclass(frozen=True)
class Applicability:
    """Context the conditional-applicability predicates look at."""

    session_type: str = "unknown"
    firefox_major: Optional[int] = None
    driver_major: Optional[int] = None
    nvd_installed: bool = False


# name -> (predicate, label shown when the predicate is false)
Rule = tuple[Callable[[Applicability], bool], str]

APPLICABILITY: dict[str, Rule] = {
    "LIBVA_DRIVER_NAME": (lambda a: a.nvd_installed, "nvidia-vaapi-driver not installed"),
    "NVD_BACKEND": (
        lambda a: a.nvd_installed and not (
            a.session_type == "wayland"
            and a.driver_major is not None
            and a.driver_major >= NVD_BACKEND_OPTIONAL_DRIVER
        ),
        f"needs nvidia-vaapi-driver; optional on Wayland with driver >= {NVD_BACKEND_OPTIONAL_DRIVER}",
    ),
    "MOZ_DISABLE_RDD_SANDBOX": (lambda a: a.nvd_installed, "nvidia-vaapi-driver not installed"),
    "MOZ_X11_EGL": (lambda a: a.session_type == "x11", "X11 only"),
    "MOZ_ENABLE_WAYLAND": (lambda a: a.session_type == "wayland", "Wayland only"),
    "EGL_PLATFORM": (lambda a: a.session_type == "wayland", "Wayland only"),
    "GBM_BACKEND": (lambda a: a.session_type == "wayland", "Wayland only"),
    "__GLX_VENDOR_LIBRARY_NAME": (lambda a: a.session_type == "wayland", "Wayland only"),
    "media.ffmpeg.vaapi.enabled": (
        lambda a: a.firefox_major is None or a.firefox_major < FF_VAAPI_PREF_REMOVED,
        f"removed in FF {FF_VAAPI_PREF_REMOVED}",
    ),
}


def applicable(name: str, ctx: Applicability) -> tuple[bool, str]:
    """Return (applies, label). Settings without a rule always apply."""
    rule = APPLICABILITY.get(name)
    if rule is None:
        return True, ""
    predicate, label = rule
    if predicate(ctx):
        return True, ""
    return False, label


def env_var_names(checks: tuple[CheckDefinition, ...] = ENV_CHECKS) -> tuple[str, ...]:
    """Names scanned for in env files."""
    return tuple(c.name for c in checks)


def lookup(name: str) -> Optional[CheckDefinition]:
    """Find a registered definition by setting name."""
    for d in ENV_CHECKS + PREF_CHECKS:
        if d.name == name:
            return d
    return None
