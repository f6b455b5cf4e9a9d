"""Relative output paths for generated linker scripts.

Two naming conventions are in use downstream and both are kept:

- DEVICE: the vendor-style name. ARM parts get an "AT" prefix when the
  catalog name starts with "SAM" (ATSAME70Q21B/ATSAME70Q21B.ld). MIPS32
  parts drop the "PIC" prefix and the file gets a "p" prefix
  (32MX795F512L/p32MX795F512L.ld).
- LOWERCASE: the device name lower-cased for both the directory and the file
  (atsame70q21b/atsame70q21b.ld).
"""

from enum import Enum
from typing import Optional

from ..device import Architecture


class PathConvention(Enum):
    """Naming convention for script directories and files"""

    DEVICE = "device"
    LOWERCASE = "lowercase"


def device_style_path(device_name: str, architecture: Architecture) -> str:
    """Vendor-style path with toolchain-specific prefixes"""
    name = device_name.upper()

    if architecture is Architecture.MIPS32:
        if name.startswith("PIC32"):
            name = name[len("PIC"):]
        return f"{name}/p{name}.ld"

    if name.startswith("SAM"):
        name = "AT" + name
    return f"{name}/{name}.ld"


def lowercase_path(device_name: str, architecture: Optional[Architecture] = None) -> str:  # pylint: disable=unused-argument
    """Lower-cased device name for both directory and file"""
    name = device_name.lower()
    return f"{name}/{name}.ld"


_STRATEGIES = {
    PathConvention.DEVICE: device_style_path,
    PathConvention.LOWERCASE: lowercase_path,
}


def resolve_script_path(device_name: str, architecture: Architecture,
                        convention: PathConvention = PathConvention.DEVICE) -> str:
    """Return the script path relative to the output base directory

    Args:
        device_name: Device name as given in the catalog
        architecture: Architecture family of the device
        convention: Which naming convention to follow

    Returns:
        Path of the form "<dirname>/<filename>.ld" using forward slashes
    """
    return _STRATEGIES[PathConvention(convention)](device_name, architecture)
