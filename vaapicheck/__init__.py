"""vaapicheck — Firefox + NVIDIA VA-API hardware decode diagnostics."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vaapicheck")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
