"""Exceptions raised while building linker scripts."""


class LinkerScriptError(Exception):
    """Base exception for linker script generation errors"""


class RegionBoundsError(LinkerScriptError):
    """Raised when a memory region ends before it starts"""


class DuplicateRegionError(LinkerScriptError):
    """Raised when two canonical regions end up with the same name"""


class RegionBindingError(LinkerScriptError):
    """Raised when a section is routed to a region that does not exist"""


class UnsupportedArchitectureError(LinkerScriptError):
    """Raised when no script profile exists for a device's architecture"""


class InvalidRegionError(LinkerScriptError):
    """Raised when a region cannot appear in a MEMORY command, such as one without a name"""
