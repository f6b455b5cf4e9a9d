#!/usr/bin/env python3

"""
profile.py - Architecture profile interface and per-run generation state

A ScriptProfile knows how to turn a device into a linker script for one
architecture family: which vendor regions to keep, what the script looks
like, and where the script goes. The state of a single generation (region
registry and text buffer) lives in a GenerationContext that is created
fresh for every device.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from ..device import Architecture, Device
from .classifier import DropHook, RegionRule, classify_regions
from .paths import PathConvention, resolve_script_path
from .region import Access, MemoryRegion, RegionType, Segment
from .registry import RegionRegistry
from .writer import DEFAULT_COMMENT_WIDTH, ScriptWriter

logger = logging.getLogger(__name__)

TOOL_NAME = "ldgen"

# Size of one device configuration register region
CONFIG_REGISTER_SIZE = 4


@dataclass
class GeneratorSettings:
    """Options shared by every script a run generates"""

    min_stack_size: int = 0x400
    min_heap_size: int = 0
    path_convention: PathConvention = PathConvention.DEVICE
    flat: bool = False
    generated_on: Optional[date] = None
    comment_width: int = DEFAULT_COMMENT_WIDTH
    on_drop: Optional[DropHook] = None

    def __post_init__(self):
        # Accepts "device"/"lowercase" too; raises ValueError for anything else
        self.path_convention = PathConvention(self.path_convention)


@dataclass
class GenerationContext:
    """State for generating one device's script"""

    device: Device
    settings: GeneratorSettings
    registry: RegionRegistry = field(default_factory=RegionRegistry)
    writer: ScriptWriter = None

    def __post_init__(self):
        if self.writer is None:
            self.writer = ScriptWriter(self.settings.comment_width)


class ScriptProfile:
    """Interface implemented by each supported architecture family"""

    architecture: Architecture
    rules: Tuple[RegionRule, ...] = ()
    output_subdir: str = ""
    # Address space view given to config register regions
    config_segment: Optional[Segment] = None

    def relative_path(self, device: Device,
                      convention: PathConvention = PathConvention.DEVICE) -> str:
        return resolve_script_path(device.name, self.architecture, convention)

    def classify(self, ctx: GenerationContext) -> None:
        """Fill the registry with the device's canonical regions"""
        for region in classify_regions(ctx.device.regions, self.rules, ctx.settings.on_drop):
            ctx.registry.add(region)
        for region in self.extra_regions(ctx):
            ctx.registry.add(region)
        for region in self.config_register_regions(ctx.device):
            ctx.registry.add(region)

    def extra_regions(self, ctx: GenerationContext) -> List[MemoryRegion]:  # pylint: disable=unused-argument
        """Regions the architecture needs beyond the vendor-reported ones"""
        return []

    def config_register_regions(self, device: Device) -> List[MemoryRegion]:
        """One small region per config register, named after its section"""
        regions = []
        for dcr in device.config_registers:
            if dcr.address is None:
                continue
            region = MemoryRegion.from_bounds(dcr.section_name, Access.NONE, dcr.address,
                                              dcr.address + CONFIG_REGISTER_SIZE, RegionType.FUSE)
            if self.config_segment is not None:
                region.set_segment(self.config_segment)
            regions.append(region)
        return regions

    def write_config_sections(self, ctx: GenerationContext) -> None:
        """Write the config register SECTIONS command, if the device has any.

        Raises:
            RegionBindingError: If a config register has no region to go to
        """
        names = [dcr.section_name for dcr in ctx.device.config_registers]
        for name in names:
            ctx.registry.require(name)
        ctx.writer.write_config_sections(names)

    def write_script(self, ctx: GenerationContext) -> None:
        """Write the complete script for the classified device"""
        raise NotImplementedError
