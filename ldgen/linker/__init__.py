"""Memory region model and linker script generation."""

from .exceptions import (
    DuplicateRegionError,
    InvalidRegionError,
    LinkerScriptError,
    RegionBindingError,
    RegionBoundsError,
    UnsupportedArchitectureError,
)
from .region import Access, MemoryRegion, RegionType, Segment
from .registry import RegionRegistry

__all__ = [
    'Access',
    'DuplicateRegionError',
    'InvalidRegionError',
    'LinkerScriptError',
    'MemoryRegion',
    'RegionBindingError',
    'RegionBoundsError',
    'RegionRegistry',
    'RegionType',
    'Segment',
    'UnsupportedArchitectureError',
]
