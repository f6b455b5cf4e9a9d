"""Regions subcommand - shows the MEMORY command a device's script would get."""

import json
import argparse
import logging

from ..device import find_device, load_device_catalog
from ..linker.builder import canonical_regions
from ..linker.exceptions import LinkerScriptError

logger = logging.getLogger(__name__)


def add_regions_parser(subparsers) -> argparse.ArgumentParser:
    """Add 'regions' subcommand parser."""
    parser = subparsers.add_parser(
        'regions',
        help='Show the canonical memory regions of a device',
        description='Classify the vendor memory regions of one device and print the '
                    'resulting MEMORY command lines, sorted by start address.',
    )
    parser.add_argument('catalog', help='Path to JSON device catalog')
    parser.add_argument('device', help='Device name')
    parser.add_argument(
        '--json',
        action='store_true',
        help='Output regions as JSON',
    )
    return parser


def run_regions(args: argparse.Namespace) -> int:
    """
    Run regions subcommand.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        device = find_device(load_device_catalog(args.catalog), args.device)
        regions = canonical_regions(device)
    except LinkerScriptError as e:
        logger.error("%s", e)
        return 1

    if args.json:
        print(json.dumps([region.to_dict() for region in regions], indent=2))
    else:
        for region in regions:
            print(region.format_memory_line())
    return 0
