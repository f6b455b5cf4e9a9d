#!/usr/bin/env python3

"""
device.py - Device descriptions consumed by the linker script generator

A device is a read-only view of what the vendor database reports for one
part: its name, architecture, raw memory regions, cache presence and the
device configuration registers that need their own sections.

Devices are normally loaded from a JSON catalog:

    {
      "devices": [
        {
          "name": "ATSAME70Q21B",
          "architecture": "arm",
          "has_cache": true,
          "regions": [
            {"name": "IFLASH", "type": "code", "start": "0x00400000", "end": "0x00600000"},
            {"name": "IRAM", "type": "sram", "start": "0x20400000", "end": "0x20460000"}
          ]
        }
      ]
    }
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .linker.exceptions import LinkerScriptError
from .linker.region import RegionType

logger = logging.getLogger(__name__)


class DeviceCatalogError(LinkerScriptError):
    """Raised when a device catalog cannot be read or is malformed"""


class Architecture(Enum):
    """CPU architecture families with a linker script profile"""

    ARM = "arm"
    MIPS32 = "mips32"

    @classmethod
    def parse(cls, value) -> "Architecture":
        """Parse an architecture name, accepting a few common aliases"""
        if isinstance(value, cls):
            return value
        aliases = {
            "arm": cls.ARM,
            "arm32": cls.ARM,
            "cortex-m": cls.ARM,
            "cortexm": cls.ARM,
            "mips": cls.MIPS32,
            "mips32": cls.MIPS32,
            "pic32": cls.MIPS32,
        }
        key = str(value).strip().lower()
        if key not in aliases:
            raise ValueError(f"Unknown architecture: {value!r}")
        return aliases[key]


@dataclass(frozen=True)
class RawRegion:
    """Memory region as reported by the vendor, before classification"""

    name: str
    type: RegionType
    start: int
    end: int


@dataclass(frozen=True)
class ConfigRegister:
    """Device configuration register (DCR) that gets its own section"""

    name: str
    address: Optional[int] = None
    section: Optional[str] = None

    @property
    def section_name(self) -> str:
        return self.section or f"config_{self.name}"


@dataclass(frozen=True)
class VectorTable:
    """Interrupt vector layout of a MIPS32 device"""

    last_vector_number: int = 0
    variable_offsets: bool = True
    ebase_address: int = 0


@dataclass(frozen=True)
class Device:
    """Target device description"""

    name: str
    architecture: Architecture
    regions: Tuple[RawRegion, ...] = ()
    has_cache: bool = False
    config_registers: Tuple[ConfigRegister, ...] = ()
    has_fpu: bool = False
    has_dspr2: bool = False
    micromips_only: bool = False
    vectors: Optional[VectorTable] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


def parse_int(value: Union[int, str]) -> int:
    """Parse an integer given as a number or as a decimal/hex string"""
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    return int(str(value).strip(), 0)


def device_from_dict(data: Dict[str, Any]) -> Device:
    """Build a Device from one catalog entry.

    Raises:
        DeviceCatalogError: If a required field is missing or malformed
    """
    name = data.get("name", "<unnamed>") if isinstance(data, dict) else "<unnamed>"
    try:
        regions = tuple(
            RawRegion(
                name=str(entry["name"]),
                type=RegionType.parse(entry.get("type", "unspecified")),
                start=parse_int(entry["start"]),
                end=parse_int(entry["end"]),
            )
            for entry in data.get("regions", [])
        )
        config_registers = tuple(
            ConfigRegister(
                name=str(entry["name"]),
                address=parse_int(entry["address"]) if "address" in entry else None,
                section=entry.get("section"),
            )
            for entry in data.get("config_registers", [])
        )

        vectors = None
        if "vectors" in data:
            vector_data = data["vectors"]
            vectors = VectorTable(
                last_vector_number=parse_int(vector_data.get("last_vector_number", 0)),
                variable_offsets=bool(vector_data.get("variable_offsets", True)),
                ebase_address=parse_int(vector_data.get("ebase_address", 0)),
            )

        known = {"name", "architecture", "regions", "has_cache", "config_registers",
                 "has_fpu", "has_dspr2", "micromips_only", "vectors"}

        return Device(
            name=str(data["name"]),
            architecture=Architecture.parse(data["architecture"]),
            regions=regions,
            has_cache=bool(data.get("has_cache", False)),
            config_registers=config_registers,
            has_fpu=bool(data.get("has_fpu", False)),
            has_dspr2=bool(data.get("has_dspr2", False)),
            micromips_only=bool(data.get("micromips_only", False)),
            vectors=vectors,
            extra={k: v for k, v in data.items() if k not in known},
        )
    except KeyError as exc:
        raise DeviceCatalogError(f"Device {name}: missing field {exc}") from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise DeviceCatalogError(f"Device {name}: {exc}") from exc


def load_device_catalog(path: Union[str, Path]) -> List[Device]:
    """Load all devices from a JSON catalog file

    Args:
        path: Path to a JSON document holding {"devices": [...]} or a bare list

    Returns:
        List of devices in catalog order

    Raises:
        DeviceCatalogError: If the file cannot be read or an entry is malformed
    """
    catalog_path = Path(path)
    try:
        with open(catalog_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except OSError as exc:
        raise DeviceCatalogError(f"Cannot read device catalog {catalog_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DeviceCatalogError(f"Invalid JSON in device catalog {catalog_path}: {exc}") from exc

    entries = document.get("devices", []) if isinstance(document, dict) else document
    if not isinstance(entries, list):
        raise DeviceCatalogError(f"Device catalog {catalog_path} has no device list")

    devices = [device_from_dict(entry) for entry in entries]
    logger.debug("Loaded %d devices from %s", len(devices), catalog_path)
    return devices


def find_device(devices: List[Device], name: str) -> Device:
    """Return the device with the given name (case-insensitive).

    Raises:
        DeviceCatalogError: If the catalog has no such device
    """
    for device in devices:
        if device.name.lower() == name.lower():
            return device
    raise DeviceCatalogError(f"Device not found in catalog: {name}")
