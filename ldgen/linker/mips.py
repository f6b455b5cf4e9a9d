#!/usr/bin/env python3

"""
mips.py - Linker script profile for MIPS32 (PIC32) devices

The layout follows the XC32 scripts: reset and boot exception vectors in
kseg1 boot flash, code and read-only data in kseg0 program flash, data in
kseg0 RAM when the device has it and kseg1 RAM otherwise. Devices whose
interrupt controller uses fixed vector offsets get an extra exception_mem
region holding small dispatch stubs that jump to the real handlers.
"""

import logging
from typing import List

from ..device import Architecture, Device, VectorTable
from .classifier import MIPS32_RULES
from .profile import TOOL_NAME, GenerationContext, ScriptProfile
from .region import Access, MemoryRegion, RegionType, Segment
from .sections import SectionStep, emit_sections, render_template

logger = logging.getLogger(__name__)

DEFAULT_EBASE_ADDRESS = 0x9D000000

# Offset of vector 0 from the exception base
VECTOR_TABLE_OFFSET = 0x200

# Size of a fixed-offset vector dispatch stub
MIPS32_VECTOR_SIZE = 32
MICROMIPS_VECTOR_SIZE = 8

BOOT_REGION = "kseg1_boot_mem"
BOOT_4B0_REGION = "kseg1_boot_mem_4B0"
PROGRAM_REGION = "kseg0_program_mem"
EXCEPTION_REGION = "exception_mem"
KSEG0_DATA_REGION = "kseg0_data_mem"
KSEG1_DATA_REGION = "kseg1_data_mem"


def vector_table(device: Device) -> VectorTable:
    return device.vectors or VectorTable()


def ebase_address(device: Device) -> int:
    """Default exception base; vendor data leaves it at 0 for most parts"""
    return vector_table(device).ebase_address or DEFAULT_EBASE_ADDRESS


def exception_region(ctx: GenerationContext) -> str:
    if EXCEPTION_REGION in ctx.registry:
        return EXCEPTION_REGION
    return PROGRAM_REGION


def data_region(ctx: GenerationContext) -> str:
    if KSEG0_DATA_REGION in ctx.registry:
        return KSEG0_DATA_REGION
    return KSEG1_DATA_REGION


def _has_cache(ctx: GenerationContext) -> bool:
    return ctx.device.has_cache


def _variable_offsets(ctx: GenerationContext) -> bool:
    return vector_table(ctx.device).variable_offsets


def _fixed_offsets(ctx: GenerationContext) -> bool:
    return not vector_table(ctx.device).variable_offsets


MIPS32_SECTIONS = (
    SectionStep("mips32/reset.ld.j2", {"boot": BOOT_REGION}),
    SectionStep("mips32/cache_vectors.ld.j2",
                {"boot_4b0": BOOT_4B0_REGION, "exception": exception_region},
                when=_has_cache),
    SectionStep("mips32/general_exception.ld.j2", {"exception": exception_region}),
    SectionStep("mips32/variable_vectors.ld.j2", {"program": PROGRAM_REGION},
                when=_variable_offsets),
    SectionStep("mips32/code.ld.j2", {"program": PROGRAM_REGION}),
    SectionStep("mips32/rodata.ld.j2", {"program": PROGRAM_REGION}),
    SectionStep("mips32/debug_data.ld.j2", {"data": data_region}),
    SectionStep("mips32/data.ld.j2", {"data": data_region}),
    SectionStep("mips32/runtime.ld.j2", {"data": data_region}),
    SectionStep("mips32/debug.ld.j2"),
    SectionStep("mips32/fixed_vectors.ld.j2", {"exception": EXCEPTION_REGION},
                when=_fixed_offsets),
)


class Mips32Profile(ScriptProfile):
    """Scripts for PIC32 parts with a MIPS32 or microMIPS core"""

    architecture = Architecture.MIPS32
    rules = MIPS32_RULES
    output_subdir = "mips32/lib/proc"
    config_segment = Segment.KSEG1

    def extra_regions(self, ctx: GenerationContext) -> List[MemoryRegion]:
        """Add exception_mem for devices with fixed vector offsets.

        It covers the general exception vectors below offset 0x200 plus one
        dispatch stub per interrupt vector.
        """
        vectors = vector_table(ctx.device)
        if vectors.variable_offsets:
            return []

        size_per_vector = MICROMIPS_VECTOR_SIZE if ctx.device.micromips_only else MIPS32_VECTOR_SIZE
        start = ebase_address(ctx.device)
        end = start + VECTOR_TABLE_OFFSET + size_per_vector * (vectors.last_vector_number + 1)
        logger.debug("%s uses fixed vector offsets; exception_mem is 0x%08X-0x%08X",
                     ctx.device.name, start, end)
        return [MemoryRegion.from_bounds(EXCEPTION_REGION, Access.NONE, start, end, RegionType.CODE)]

    def write_script(self, ctx: GenerationContext) -> None:
        writer = ctx.writer
        settings = ctx.settings

        writer.write_license_header(TOOL_NAME, settings.generated_on)
        writer.write(render_template(
            "mips32/preamble.ld.j2",
            {"settings": settings, "ebase_address": ebase_address(ctx.device)},
            settings.comment_width))
        writer.write_memory_command(ctx.registry.sorted_view())
        self.write_config_sections(ctx)

        writer.println("SECTIONS")
        writer.println("{")
        emit_sections(ctx, MIPS32_SECTIONS, {"vectors": vector_table(ctx.device)})
        writer.println("}")
