#!/usr/bin/env python3
"""
Command-line entry point for ldgen.

    ldgen generate devices.json --output-dir build/ld
    ldgen regions devices.json ATSAME70Q21B
    ldgen footprint devices.json ATSAME70Q21B firmware.elf
"""

import sys
import argparse
import logging
from typing import List, Optional

from . import __version__
from .commands.footprint import add_footprint_parser, run_footprint
from .commands.generate import add_generate_parser, run_generate
from .commands.regions import add_regions_parser, run_regions

logger = logging.getLogger(__name__)

COMMANDS = {
    'generate': run_generate,
    'regions': run_regions,
    'footprint': run_footprint,
}


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr, with debug output when verbose"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ldgen',
        description='Generate GNU ld linker scripts for ARM Cortex-M and MIPS32 devices',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug output',
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True
    add_generate_parser(subparsers)
    add_regions_parser(subparsers)
    add_footprint_parser(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    return COMMANDS[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
