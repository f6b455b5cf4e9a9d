#!/usr/bin/env python3

"""
classifier.py - Map vendor memory regions to canonical linker script regions

Vendor catalogs list more regions than a linker script needs and name them
differently than the toolchain expects. Each architecture has a rule table
saying which vendor regions are kept, what they are renamed to, what access
flags they get and, on MIPS, which kseg view of the address space they live
in. Regions that match no rule are dropped.
"""

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from ..device import RawRegion
from .exceptions import RegionBoundsError
from .region import Access, MemoryRegion, RegionType, Segment

logger = logging.getLogger(__name__)

DropHook = Callable[[RawRegion], None]


@dataclass(frozen=True)
class RegionOutput:
    """One canonical region produced by a rule.

    The name template may use {name} (vendor name) and {lower} (vendor name
    in lower case).
    """

    name: str
    segment: Optional[Segment] = None


@dataclass(frozen=True)
class RegionRule:
    """Classification rule; the first matching rule in a table wins"""

    types: FrozenSet[RegionType]
    names: Optional[FrozenSet[str]] = None  # lower-case; None matches any name
    outputs: Tuple[RegionOutput, ...] = (RegionOutput("{name}"),)
    access: Access = Access.NONE
    at_physical: Optional[int] = None
    # Replaces the outputs with regions computed from the vendor region
    expand: Optional[Callable[[MemoryRegion], List[MemoryRegion]]] = None

    def matches(self, region: MemoryRegion) -> bool:
        if region.type not in self.types:
            return False
        if self.names is not None and region.name.lower() not in self.names:
            return False
        if self.at_physical is not None and region.physical_start != self.at_physical:
            return False
        return True

    def apply(self, region: MemoryRegion) -> List[MemoryRegion]:
        """Produce the canonical regions for a matching vendor region"""
        if self.expand is not None:
            return self.expand(region)

        results = []
        for output in self.outputs:
            canonical = region.copy()
            canonical.set_name(output.name.format(name=region.name, lower=region.name.lower()))
            canonical.set_access(self.access)
            if output.segment is not None:
                canonical.set_segment(output.segment)
            results.append(canonical)
        return results


def _types(*region_types: RegionType) -> FrozenSet[RegionType]:
    return frozenset(region_types)


def _names(*names: str) -> FrozenSet[str]:
    return frozenset(name.lower() for name in names)


CORTEX_M_RULES: Tuple[RegionRule, ...] = (
    RegionRule(_types(RegionType.CODE), _names("IFLASH"),
               (RegionOutput("rom"),), Access.READ | Access.EXEC),
    RegionRule(_types(RegionType.CODE), _names("ITCM"),
               (RegionOutput("itcm"),), Access.ALL),
    RegionRule(_types(RegionType.SRAM), _names("IRAM", "HSRAM"),
               (RegionOutput("ram"),), Access.ALL),
    RegionRule(_types(RegionType.SRAM), _names("DTCM"),
               (RegionOutput("dtcm"),), Access.ALL),
    RegionRule(_types(RegionType.EBI, RegionType.SQI, RegionType.SDRAM), None,
               (RegionOutput("{lower}"),)),
)


# Physical address at which a MIPS32 CPU starts executing after reset
MIPS_RESET_PHYS_ADDR = 0x1FC00000


def _fixed_region(name: str, start: int, end: int) -> MemoryRegion:
    return MemoryRegion.from_bounds(name, Access.NONE, start, end, RegionType.BOOT)


def mips_boot_regions(boot: MemoryRegion) -> List[MemoryRegion]:
    """Lay out the boot flash regions based on the size of the boot flash.

    Boot flash comes in 3kB, 12kB, 20kB and 80kB sizes depending on the
    subfamily, and each one reserves space for the debugger differently.
    The reported region is a bit smaller than its nominal size because the
    config registers live at its end.
    """
    if boot.length <= 3 * 1024:
        # PIC32MM and small PIC32MX
        return [
            _fixed_region("debug_exec_mem", 0x9FC00490, 0x9FC00BF0),
            _fixed_region("kseg0_boot_mem", 0x9FC00490, 0x9FC00490),
            _fixed_region("kseg1_boot_mem", 0xBFC00000, 0xBFC00490),
        ]
    if boot.length <= 12 * 1024:
        # Large PIC32MX
        return [
            _fixed_region("kseg0_boot_mem", 0x9FC00490, 0x9FC00E00),
            _fixed_region("kseg1_boot_mem", 0xBFC00000, 0xBFC00490),
            _fixed_region("debug_exec_mem", 0xBFC02000, 0xBFC02FF0),
        ]
    if boot.length <= 20 * 1024:
        # PIC32MK; the empty kseg0_boot_mem matches the XC32 scripts
        return [
            _fixed_region("kseg0_boot_mem", 0x9FC004B0, 0x9FC004B0),
            _fixed_region("debug_exec_mem", 0x9FC20490, 0x9FC23FB0),
            _fixed_region("kseg1_boot_mem", 0xBFC00000, 0xBFC00490),
            _fixed_region("kseg1_boot_mem_4B0", 0xBFC004B0, 0xBFC03FB0),
        ]
    # PIC32MZ does not reserve boot flash for the debugger
    return [
        _fixed_region("kseg0_boot_mem", 0x9FC004B0, 0x9FC004B0),
        _fixed_region("kseg1_boot_mem", 0xBFC00000, 0xBFC00490),
        _fixed_region("kseg1_boot_mem_4B0", 0xBFC004B0, 0xBFC0FF00),
    ]


MIPS32_RULES: Tuple[RegionRule, ...] = (
    RegionRule(_types(RegionType.BOOT), at_physical=MIPS_RESET_PHYS_ADDR,
               expand=mips_boot_regions),
    RegionRule(_types(RegionType.BOOT), None,
               (RegionOutput("{name}", Segment.KSEG1),)),
    RegionRule(_types(RegionType.CODE), _names("code"),
               (RegionOutput("kseg0_program_mem", Segment.KSEG0),), Access.READ | Access.EXEC),
    RegionRule(_types(RegionType.SRAM), _names("kseg1_data_mem"),
               (RegionOutput("kseg1_data_mem", Segment.KSEG1),), Access.WRITE | Access.NOT_EXEC),
    RegionRule(_types(RegionType.SRAM), _names("kseg0_data_mem"),
               (RegionOutput("kseg0_data_mem", Segment.KSEG0),), Access.WRITE | Access.NOT_EXEC),
    RegionRule(_types(RegionType.EBI, RegionType.SQI), None,
               (RegionOutput("kseg2_{name}", Segment.KSEG2),
                RegionOutput("kseg3_{name}", Segment.KSEG3))),
    RegionRule(_types(RegionType.SDRAM), None,
               (RegionOutput("{name}", Segment.KSEG0),)),
    RegionRule(_types(RegionType.FUSE, RegionType.PERIPHERAL), None,
               (RegionOutput("{name}", Segment.KSEG1),)),
)


def _log_dropped(raw: RawRegion) -> None:
    logger.debug("Dropping %s region %s (no linker script rule)", raw.type.value, raw.name)


def classify_region(region: MemoryRegion, rules: Iterable[RegionRule]) -> List[MemoryRegion]:
    """Return the canonical regions for one vendor region (empty if dropped)"""
    for rule in rules:
        if rule.matches(region):
            return rule.apply(region)
    return []


def classify_regions(raw_regions: Iterable[RawRegion], rules: Iterable[RegionRule],
                     on_drop: Optional[DropHook] = None) -> List[MemoryRegion]:
    """Classify vendor regions in order

    Args:
        raw_regions: Regions as reported by the device
        rules: Architecture rule table
        on_drop: Called with each vendor region that no rule keeps

    Returns:
        Canonical regions in the order they were produced. Regions whose end
        is below their start are logged and skipped.
    """
    rules = tuple(rules)
    drop_hook = on_drop or _log_dropped
    canonical: List[MemoryRegion] = []

    for raw in raw_regions:
        try:
            region = MemoryRegion.from_bounds(raw.name, Access.NONE, raw.start, raw.end, raw.type)
        except RegionBoundsError as e:
            logger.warning("Skipping malformed memory region: %s", e)
            continue

        produced = classify_region(region, rules)
        if not produced:
            drop_hook(raw)
        canonical.extend(produced)

    return canonical
