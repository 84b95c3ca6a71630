"""NVIDIA driver — kernel modules, modeset, fbdev."""

from ..config import Settings
from ..context import RunContext
from ..models import FactStatus, HostProfile, ResolvedFact
from ..resolver import FactResolver
from ..rules.base import CheckDefinition, Classification, Severity
from ..rules.evaluate import evaluate
from ..scanner import kernel
from ..scanner.host import is_blackwell, is_pre_ampere

SECTION = "NVIDIA DRIVER INFO"

# fbdev=1 is needed on some Wayland setups from this driver major (kernel >= 6.2)
FBDEV_MIN_DRIVER = 545

MODESET = CheckDefinition(
    "nvidia-drm.modeset", "1", Severity.CRITICAL, None,
    "DRM kernel modesetting",
    "Add 'nvidia-drm.modeset=1' to GRUB_CMDLINE_LINUX_DEFAULT in /etc/default/grub or add "
    "'options nvidia-drm modeset=1' to /etc/modprobe.d/nvidia.conf, then rebuild the initramfs",
)
FBDEV = CheckDefinition(
    "nvidia-drm.fbdev", "1", Severity.ADVISORY, None,
    "DRM framebuffer device",
    "Some Wayland setups (kernel >=6.2, driver >=545) require 'nvidia-drm.fbdev=1'; "
    "add to /etc/modprobe.d/nvidia.conf",
)


def _evaluate_param(definition: CheckDefinition, fact: ResolvedFact, ctx: RunContext) -> None:
    """Denied after the sudo retry is 'could not verify', never 'absent'."""
    if fact.status == FactStatus.DENIED:
        ctx.flag(
            SECTION, Classification.WARN,
            f"{definition.name} could not be verified (sysfs requires root)",
            f"Run: sudo cat /sys/module/nvidia_drm/parameters/{definition.name.split('.', 1)[1]}",
        )
        return
    evaluate(SECTION, definition, fact, ctx)


def check(host: HostProfile, resolver: FactResolver, ctx: RunContext, settings: Settings) -> None:
    if not host.nvidia_smi:
        ctx.note(SECTION, "nvidia-smi not found — skipping NVIDIA-specific checks")
        return
    if host.nvidia_smi_status == FactStatus.TIMED_OUT:
        ctx.flag(
            SECTION, Classification.WARN,
            f"nvidia-smi timed out after {resolver.timeout:g}s — driver version could not be verified",
            "The driver may be hung or the GPU in a bad state; check dmesg for NVRM/Xid errors",
        )
        return
    if host.nvidia_smi_status == FactStatus.MALFORMED:
        ctx.flag(
            SECTION, Classification.WARN,
            "nvidia-smi returned an unparsable driver version",
            "Run nvidia-smi by hand; [N/A] or ERR! usually means the driver is not fully loaded",
        )
        return
    if not host.nvidia_driver_version:
        ctx.flag(
            SECTION, Classification.WARN,
            "nvidia-smi found but could not determine driver version",
            "Check that the NVIDIA driver is fully loaded: nvidia-smi",
        )
        return

    ctx.note(SECTION, f"GPU Name:        {host.nvidia_gpu_name or 'unknown'}")
    ctx.note(SECTION, f"Driver Version:  {host.nvidia_driver_version}")
    ctx.pre_ampere = is_pre_ampere(host.nvidia_gpu_name)

    loaded = kernel.module_loaded("nvidia_drm", resolver.runner, resolver.root)
    if loaded is False:
        ctx.flag(SECTION, Classification.FAIL, "nvidia_drm kernel module is not loaded",
                 "Load it with: sudo modprobe nvidia_drm")
    elif loaded is None:
        ctx.note(SECTION, "Kernel Modules:  (could not list loaded modules)")
    elif kernel.open_kernel_modules(resolver.root, resolver.runner):
        ctx.note(SECTION, "Kernel Modules:  open")
    else:
        ctx.note(SECTION, "Kernel Modules:  proprietary")
        if is_blackwell(host.nvidia_gpu_name):
            ctx.flag(SECTION, Classification.FAIL,
                     "Blackwell GPU detected but proprietary modules are loaded",
                     "Blackwell GPUs require open kernel modules; install nvidia-open package")

    _evaluate_param(MODESET, resolver.resolve_drm_param("modeset", cmdline_fallback=True), ctx)

    persistent = kernel.persistent_modeset(resolver.root)
    if persistent:
        path, line = persistent
        ctx.flag(SECTION, Classification.OK, f"nvidia-drm modeset=1 configured in {path}: {line}")

    major = host.nvidia_driver_major
    if host.session_type == "wayland" and major is not None and major >= FBDEV_MIN_DRIVER:
        _evaluate_param(FBDEV, resolver.resolve_drm_param("fbdev"), ctx)
