"""Collection of canonical memory regions for one linker script."""

from typing import Iterator, List, Optional

from .exceptions import DuplicateRegionError, InvalidRegionError, RegionBindingError
from .region import MemoryRegion


class RegionRegistry:
    """Ordered set of canonical regions, unique by name.

    Regions keep insertion order until sort() is called. The MEMORY command
    is always written from sorted_view() so callers never rely on the
    registry staying sorted after add().
    """

    def __init__(self):
        self._regions: List[MemoryRegion] = []

    def add(self, region: MemoryRegion) -> None:
        """Add a region, rejecting empty or duplicate names"""
        if not region.name:
            raise InvalidRegionError(
                f"Region at 0x{region.start:08X} has no name")
        if self.find_by_name(region.name) is not None:
            raise DuplicateRegionError(
                f"Memory region '{region.name}' is defined more than once")
        self._regions.append(region)

    def clear(self) -> None:
        self._regions.clear()

    def find_by_name(self, name: str) -> Optional[MemoryRegion]:
        """Return the region with the given name, or None"""
        for region in self._regions:
            if region.name == name:
                return region
        return None

    def require(self, name: str) -> MemoryRegion:
        """Return the region with the given name.

        Raises:
            RegionBindingError: If no such region exists
        """
        region = self.find_by_name(name)
        if region is None:
            raise RegionBindingError(
                f"Section bound to memory region '{name}', which this device does not have "
                f"(available: {', '.join(self.names()) or 'none'})")
        return region

    def sorted_view(self) -> List[MemoryRegion]:
        """Regions ordered by ascending start address (stable on ties)"""
        return sorted(self._regions, key=lambda region: region.start)

    def sort(self) -> None:
        self._regions.sort(key=lambda region: region.start)

    def names(self) -> List[str]:
        return [region.name for region in self._regions]

    def __contains__(self, name: str) -> bool:
        return self.find_by_name(name) is not None

    def __iter__(self) -> Iterator[MemoryRegion]:
        return iter(self._regions)

    def __len__(self) -> int:
        return len(self._regions)
