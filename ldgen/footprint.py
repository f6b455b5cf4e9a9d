#!/usr/bin/env python3
"""
Footprint check of a linked ELF image against a device's memory regions.

The allocated sections of the image are placed into the canonical regions
the generated script would declare, which shows how full each region is and
whether anything overflowed or landed outside every region.
"""

import bisect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from .linker.region import MemoryRegion

logger = logging.getLogger(__name__)

# Section occupies memory at run time
SHF_ALLOC = 0x2


class FootprintError(Exception):
    """Raised when an ELF image cannot be read"""


@dataclass
class FootprintSection:
    """Allocated section of an ELF image"""

    name: str
    address: int
    size: int

    def to_dict(self) -> dict:
        return {"name": self.name, "address": self.address, "size": self.size}


@dataclass
class RegionUsage:
    """Sections placed in one memory region"""

    region: MemoryRegion
    sections: List[FootprintSection] = field(default_factory=list)

    @property
    def used_size(self) -> int:
        return sum(section.size for section in self.sections)

    @property
    def free_size(self) -> int:
        return self.region.length - self.used_size

    @property
    def utilization_percent(self) -> float:
        if self.region.length == 0:
            return 0.0
        return self.used_size / self.region.length * 100

    @property
    def overflow(self) -> bool:
        """True if the sections do not fit, by total size or by extent"""
        if self.used_size > self.region.length:
            return True
        return any(section.address + section.size > self.region.end for section in self.sections)

    def to_dict(self) -> dict:
        return {
            **self.region.to_dict(),
            "used_size": self.used_size,
            "free_size": self.free_size,
            "utilization_percent": round(self.utilization_percent, 2),
            "overflow": self.overflow,
            "sections": [section.to_dict() for section in self.sections],
        }


@dataclass
class FootprintReport:
    """Region usage of one ELF image"""

    regions: List[RegionUsage]
    unmapped: List[FootprintSection] = field(default_factory=list)

    @property
    def overflowing(self) -> List[RegionUsage]:
        return [usage for usage in self.regions if usage.overflow]

    def to_dict(self) -> dict:
        return {
            "regions": [usage.to_dict() for usage in self.regions],
            "unmapped_sections": [section.to_dict() for section in self.unmapped],
            "overflowing_regions": [usage.region.name for usage in self.overflowing],
        }


def read_allocated_sections(elffile) -> List[FootprintSection]:
    """Return the named, allocated, non-empty sections of an open ELF file.

    Raises:
        FootprintError: If the section headers cannot be read
    """
    sections = []
    try:
        for section in elffile.iter_sections():
            if not section.name:
                continue
            # Only sections loaded into memory count against a region
            if not section['sh_flags'] & SHF_ALLOC:
                continue
            if section['sh_size'] == 0:
                continue
            sections.append(FootprintSection(
                name=section.name,
                address=section['sh_addr'],
                size=section['sh_size'],
            ))
    except (IOError, OSError) as e:
        raise FootprintError(f"Failed to read ELF sections: {e}") from e
    except ELFError as e:
        raise FootprintError(f"Invalid ELF file format: {e}") from e
    return sections


class RegionLookup:
    """Finds the region holding an address by binary search over start addresses.

    Regions may overlap (exception_mem sits inside kseg0_program_mem), in
    which case the one starting last wins.
    """

    def __init__(self, regions: Iterable[MemoryRegion]):
        self._regions = sorted(regions, key=lambda region: region.start)
        self._starts = [region.start for region in self._regions]

    @property
    def regions(self) -> List[MemoryRegion]:
        return list(self._regions)

    def find(self, address: int) -> Optional[MemoryRegion]:
        index = bisect.bisect_right(self._starts, address) - 1
        while index >= 0:
            region = self._regions[index]
            if region.start <= address < region.end:
                return region
            index -= 1
        return None


def map_sections(sections: Iterable[FootprintSection],
                 regions: Iterable[MemoryRegion]) -> FootprintReport:
    """Place sections into the regions containing their start addresses

    Args:
        sections: Allocated sections of an image
        regions: Canonical regions of the device

    Returns:
        Report with one entry per region, in address order
    """
    lookup = RegionLookup(regions)
    usage_by_name = {}
    report = FootprintReport(regions=[])
    for region in lookup.regions:
        usage = RegionUsage(region)
        usage_by_name[region.name] = usage
        report.regions.append(usage)

    for section in sections:
        region = lookup.find(section.address)
        if region is None:
            logger.debug("Section %s at 0x%08X is outside every region",
                         section.name, section.address)
            report.unmapped.append(section)
            continue
        usage_by_name[region.name].sections.append(section)

    return report


def analyze_elf(elf_path: Union[str, Path], regions: Iterable[MemoryRegion]) -> FootprintReport:
    """Check a linked image against a set of memory regions

    Raises:
        FootprintError: If the file cannot be opened or is not a valid ELF file
    """
    try:
        with open(elf_path, 'rb') as f:
            elffile = ELFFile(f)
            sections = read_allocated_sections(elffile)
    except (IOError, OSError) as e:
        raise FootprintError(f"Cannot open ELF file {elf_path}: {e}") from e
    except ELFError as e:
        raise FootprintError(f"Invalid ELF file {elf_path}: {e}") from e

    logger.debug("%s: %d allocated sections", elf_path, len(sections))
    return map_sections(sections, regions)
