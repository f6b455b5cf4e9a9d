#!/usr/bin/env python3

"""
builder.py - Turn devices into linker script files

ScriptBuilder runs one architecture profile over a device: classify the
vendor regions, write the script into a memory buffer, then move the text
into place under the output base directory. The file is written to a
temporary sibling first and renamed over the target, so a failed run never
leaves a partial script behind.
"""

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Type, Union

from ..device import Architecture, Device
from .cortexm import CortexMProfile
from .exceptions import LinkerScriptError, UnsupportedArchitectureError
from .mips import Mips32Profile
from .profile import GenerationContext, GeneratorSettings, ScriptProfile
from .region import MemoryRegion

logger = logging.getLogger(__name__)

PROFILES: Dict[Architecture, Type[ScriptProfile]] = {
    Architecture.ARM: CortexMProfile,
    Architecture.MIPS32: Mips32Profile,
}


def profile_for(architecture: Architecture) -> ScriptProfile:
    """Return the script profile for an architecture.

    Raises:
        UnsupportedArchitectureError: If no profile handles the architecture
    """
    try:
        return PROFILES[architecture]()
    except KeyError as exc:
        raise UnsupportedArchitectureError(
            f"No linker script profile for architecture {architecture}") from exc


def canonical_regions(device: Device,
                      settings: Optional[GeneratorSettings] = None) -> List[MemoryRegion]:
    """Regions the device's script would list in its MEMORY command, sorted
    by start address.

    Raises:
        LinkerScriptError: If the device's regions cannot be classified
    """
    ctx = GenerationContext(device=device, settings=settings or GeneratorSettings())
    profile_for(device.architecture).classify(ctx)
    return ctx.registry.sorted_view()


@dataclass
class GenerationResult:
    """Outcome of generating one device's script"""

    device_name: str
    path: Optional[Path]
    success: bool
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "device": self.device_name,
            "path": str(self.path) if self.path else None,
            "success": self.success,
            "message": self.message,
        }


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def published_mode(path: Path) -> int:
    """Permission bits for a script written to path: those of the file it
    replaces, or what a plain open() would create under the current umask.
    """
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_current_umask()


def write_text_atomic(path: Path, text: str) -> None:
    """Write text with Unix line endings, replacing the target in one step.

    Raises:
        OSError: If the directory cannot be created or the file written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = published_mode(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        # mkstemp creates the file owner-only
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ScriptBuilder:
    """Generates linker scripts for one architecture profile

    Args:
        profile: Architecture profile deciding regions and layout
        base_path: Output base directory
        settings: Options shared by every generated script
    """

    def __init__(self, profile: ScriptProfile, base_path: Union[str, Path],
                 settings: Optional[GeneratorSettings] = None):
        self.profile = profile
        self.base_path = Path(base_path)
        self.settings = settings or GeneratorSettings()

    def relative_path(self, device: Device) -> str:
        """Script path relative to the base directory, including the
        architecture subdirectory unless the settings ask for a flat layout.
        """
        script_path = self.profile.relative_path(device, self.settings.path_convention)
        if self.settings.flat or not self.profile.output_subdir:
            return script_path
        return f"{self.profile.output_subdir}/{script_path}"

    def output_path(self, device: Device) -> Path:
        return self.base_path / self.relative_path(device)

    def render(self, device: Device) -> str:
        """Produce the full script text for a device without touching disk.

        Raises:
            LinkerScriptError: If the device cannot be turned into a script
        """
        if device.architecture is not self.profile.architecture:
            raise UnsupportedArchitectureError(
                f"{device.name} is a {device.architecture.value} device; this builder "
                f"generates {self.profile.architecture.value} scripts")

        ctx = GenerationContext(device=device, settings=self.settings)
        self.profile.classify(ctx)
        logger.debug("%s: %d memory regions: %s", device.name, len(ctx.registry),
                     ", ".join(ctx.registry.names()))
        self.profile.write_script(ctx)
        return ctx.writer.getvalue()

    def generate(self, device: Device) -> GenerationResult:
        """Generate and write the script for a device.

        Errors are reported in the result rather than raised.
        """
        path = self.output_path(device)
        try:
            text = self.render(device)
            write_text_atomic(path, text)
        except LinkerScriptError as e:
            logger.error("%s: %s", device.name, e)
            return GenerationResult(device.name, path, False, str(e))
        except OSError as e:
            logger.error("%s: cannot write %s: %s", device.name, path, e)
            return GenerationResult(device.name, path, False, f"Cannot write {path}: {e}")

        logger.info("%s: wrote %s", device.name, path)
        return GenerationResult(device.name, path, True, "ok")


def generate_scripts(devices: Iterable[Device], base_dir: Union[str, Path],
                     settings: Optional[GeneratorSettings] = None) -> List[GenerationResult]:
    """Generate scripts for many devices, continuing past failures

    Args:
        devices: Devices of any supported architecture
        base_dir: Output base directory
        settings: Options shared by every generated script

    Returns:
        One result per device, in input order
    """
    settings = settings or GeneratorSettings()
    builders: Dict[Architecture, ScriptBuilder] = {}
    results = []

    for device in devices:
        try:
            builder = builders.get(device.architecture)
            if builder is None:
                builder = ScriptBuilder(profile_for(device.architecture), base_dir, settings)
                builders[device.architecture] = builder
        except UnsupportedArchitectureError as e:
            logger.error("%s: %s", device.name, e)
            results.append(GenerationResult(device.name, None, False, str(e)))
            continue

        results.append(builder.generate(device))

    failed = sum(1 for result in results if not result.success)
    logger.info("Generated %d of %d linker scripts", len(results) - failed, len(results))
    return results
