"""System scanners — narrow wrappers around files, sysfs and external tools."""

from .host import inspect_host

__all__ = ["inspect_host"]
