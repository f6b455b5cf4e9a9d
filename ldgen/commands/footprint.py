"""Footprint subcommand - checks a linked image against a device's regions."""

import json
import argparse
import logging

from ..device import find_device, load_device_catalog
from ..footprint import FootprintError, FootprintReport, analyze_elf
from ..linker.builder import canonical_regions
from ..linker.exceptions import LinkerScriptError

logger = logging.getLogger(__name__)


def add_footprint_parser(subparsers) -> argparse.ArgumentParser:
    """Add 'footprint' subcommand parser."""
    parser = subparsers.add_parser(
        'footprint',
        help='Check an ELF image against the memory regions of a device',
        description=(
            'Place the allocated sections of a linked ELF image into the memory\n'
            'regions the generated linker script declares and report how full\n'
            'each region is. Exits with 1 if any region overflows.'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('catalog', help='Path to JSON device catalog')
    parser.add_argument('device', help='Device name')
    parser.add_argument('elf_path', help='Path to linked ELF file')
    parser.add_argument(
        '--json',
        action='store_true',
        help='Output the footprint report as JSON',
    )
    return parser


def print_footprint(report: FootprintReport) -> None:
    """Print region usage in human-readable format"""
    print(f"{'Region':<32}{'Used':>12}{'Size':>12}{'Use%':>8}")
    for usage in report.regions:
        if not usage.sections and usage.region.length == 0:
            continue
        marker = "  OVERFLOW" if usage.overflow else ""
        print(f"{usage.region.name:<32}{usage.used_size:>12,}{usage.region.length:>12,}"
              f"{usage.utilization_percent:>7.1f}%{marker}")

    if report.unmapped:
        print("\nSections outside every region:")
        for section in report.unmapped:
            print(f"  {section.name} at 0x{section.address:08X} ({section.size:,} bytes)")


def run_footprint(args: argparse.Namespace) -> int:
    """
    Run footprint subcommand.

    Returns:
        Exit code (0 if everything fits, 1 on overflow or error)
    """
    try:
        device = find_device(load_device_catalog(args.catalog), args.device)
        report = analyze_elf(args.elf_path, canonical_regions(device))
    except (LinkerScriptError, FootprintError) as e:
        logger.error("%s", e)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_footprint(report)

    for usage in report.overflowing:
        logger.error("Region %s overflows: %d bytes used of %d",
                     usage.region.name, usage.used_size, usage.region.length)
    for section in report.unmapped:
        logger.warning("Section %s at 0x%08X is not in any memory region",
                       section.name, section.address)

    return 1 if report.overflowing else 0
