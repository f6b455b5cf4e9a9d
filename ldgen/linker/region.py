#!/usr/bin/env python3

"""
region.py - Memory region model used to build the MEMORY command

A MemoryRegion describes one contiguous span of address space:
- Name used by the linker script (renamed during classification)
- Vendor region type (code, SRAM, external bus, ...)
- Access flags rendered as the (rwx) attribute string
- Start address and length, both unsigned 32-bit values

MIPS devices additionally place regions into one of the kseg views of the
address space by rewriting the top three address bits.
"""

from dataclasses import dataclass, replace
from enum import Enum, IntEnum, IntFlag

from .exceptions import RegionBoundsError

ADDRESS_MASK = 0xFFFFFFFF
PHYSICAL_MASK = 0x1FFFFFFF

# Column at which the access flags start in a MEMORY command line
NAME_COLUMN_WIDTH = 32


class RegionType(Enum):
    """Vendor memory region types"""

    UNSPECIFIED = "unspecified"
    BOOT = "boot"
    CODE = "code"
    SRAM = "sram"
    EBI = "ebi"
    SQI = "sqi"
    SDRAM = "sdram"
    FUSE = "fuse"
    PERIPHERAL = "peripheral"

    @classmethod
    def parse(cls, value) -> "RegionType":
        """Parse a region type from its case-insensitive name"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown memory region type: {value!r}") from exc


class Access(IntFlag):
    """Access permissions for a memory region"""

    NONE = 0x00
    READ = 0x01
    WRITE = 0x02
    EXEC = 0x04
    ALL = 0x07
    NOT_EXEC = 0x08


# Order in which flags appear in the attribute string
_ACCESS_LETTERS = (
    (Access.READ, "r"),
    (Access.WRITE, "w"),
    (Access.EXEC, "x"),
    (Access.NOT_EXEC, "!x"),
)


class Segment(IntEnum):
    """MIPS32 address space views selected by the top three address bits"""

    KSEG0 = 0x80000000  # cached, unmapped
    KSEG1 = 0xA0000000  # uncached, unmapped
    KSEG2 = 0xC0000000
    KSEG3 = 0xE0000000


def format_access(access: Access) -> str:
    """Render access flags as a linker attribute string such as "(rx)".

    Returns an empty string when no flag is set.
    """
    if not access:
        return ""
    letters = "".join(letter for flag, letter in _ACCESS_LETTERS if access & flag)
    return f"({letters})"


@dataclass
class MemoryRegion:
    """Memory region data structure"""

    name: str
    type: RegionType
    access: Access
    start: int
    length: int

    @classmethod
    def from_bounds(cls, name: str, access: Access, start: int, end: int,
                    region_type: RegionType = RegionType.UNSPECIFIED) -> "MemoryRegion":
        """Create a region spanning [start, end).

        Raises:
            RegionBoundsError: If end is below start
        """
        start &= ADDRESS_MASK
        end &= ADDRESS_MASK
        if end < start:
            raise RegionBoundsError(
                f"Region {name or '<unnamed>'} ends at 0x{end:08X} before it starts at 0x{start:08X}")

        return cls(
            name=name,
            type=region_type,
            access=Access(access),
            start=start,
            length=(end - start) & ADDRESS_MASK,
        )

    @property
    def end(self) -> int:
        """Address one past the last byte of the region"""
        return self.start + self.length

    @property
    def physical_start(self) -> int:
        """Start address with any segment bits removed"""
        return self.start & PHYSICAL_MASK

    def copy(self) -> "MemoryRegion":
        """Return an independent region with identical fields"""
        return replace(self)

    def set_name(self, name: str) -> None:
        """Rename the region to the name used in the linker script"""
        self.name = name

    def set_access(self, access: Access) -> None:
        """Set which kinds of sections the linker may place in this region.

        Most regions leave this empty because the script routes sections to
        them explicitly.
        """
        self.access = Access(access)

    def set_segment(self, segment: Segment) -> None:
        """Move the region into a MIPS kseg view, keeping the low 29 bits"""
        self.start = (self.start & PHYSICAL_MASK) | int(segment)

    def format_memory_line(self) -> str:
        """Format the region as one line of a MEMORY command (without indent)"""
        return (
            f"{self.name:<{NAME_COLUMN_WIDTH}}{format_access(self.access)} : "
            f"ORIGIN = 0x{self.start:08X}, LENGTH = 0x{self.length:X}"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary format for JSON output"""
        return {
            "name": self.name,
            "type": self.type.value,
            "attributes": format_access(self.access).strip("()"),
            "start_address": self.start,
            "end_address": self.end,
            "total_size": self.length,
        }
