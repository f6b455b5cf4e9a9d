"""Generate subcommand - writes linker scripts for devices in a catalog."""

import os
import json
import argparse
import logging
from typing import List

from ..device import DeviceCatalogError, find_device, load_device_catalog
from ..linker.builder import GenerationResult, generate_scripts
from ..linker.paths import PathConvention
from ..linker.profile import GeneratorSettings

logger = logging.getLogger(__name__)

OUTPUT_DIR_ENV = 'LDGEN_OUTPUT_DIR'
DEFAULT_OUTPUT_DIR = 'ld'


def parse_size(value: str) -> int:
    """argparse type for sizes given in decimal or hex"""
    try:
        size = int(value, 0)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r}") from e
    if size < 0:
        raise argparse.ArgumentTypeError(f"size must not be negative: {value!r}")
    return size


def add_generate_parser(subparsers) -> argparse.ArgumentParser:
    """Add 'generate' subcommand parser."""
    parser = subparsers.add_parser(
        'generate',
        help='Generate linker scripts from a device catalog',
        description=(
            'Generate GNU ld linker scripts for the devices in a JSON catalog.\n\n'
            'Scripts are written below the output directory, in cortex-m/lib/proc\n'
            'or mips32/lib/proc unless --flat is given.'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument('catalog', help='Path to JSON device catalog')
    parser.add_argument(
        '--device',
        action='append',
        metavar='NAME',
        help='Only generate the named device (may be repeated)',
    )
    parser.add_argument(
        '--output-dir',
        default=os.environ.get(OUTPUT_DIR_ENV, DEFAULT_OUTPUT_DIR),
        help=f'Output base directory (default: ${OUTPUT_DIR_ENV} or "{DEFAULT_OUTPUT_DIR}")',
    )

    layout_group = parser.add_argument_group('layout options')
    layout_group.add_argument(
        '--min-stack-size',
        type=parse_size,
        default=GeneratorSettings.min_stack_size,
        help='Default minimum stack size (default: 0x400)',
    )
    layout_group.add_argument(
        '--min-heap-size',
        type=parse_size,
        default=GeneratorSettings.min_heap_size,
        help='Default minimum heap size (default: 0)',
    )
    layout_group.add_argument(
        '--comment-width',
        type=int,
        default=GeneratorSettings.comment_width,
        help='Maximum width of comment lines (default: 100)',
    )

    path_group = parser.add_argument_group('path options')
    path_group.add_argument(
        '--lowercase-paths',
        action='store_true',
        help='Name directories and files after the lower-cased device name',
    )
    path_group.add_argument(
        '--flat',
        action='store_true',
        help='Do not put scripts in per-architecture subdirectories',
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print results as JSON',
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> GeneratorSettings:
    """Build generator settings from parsed command line options"""
    return GeneratorSettings(
        min_stack_size=args.min_stack_size,
        min_heap_size=args.min_heap_size,
        path_convention=PathConvention.LOWERCASE if args.lowercase_paths else PathConvention.DEVICE,
        flat=args.flat,
        comment_width=args.comment_width,
    )


def print_results(results: List[GenerationResult], as_json: bool = False) -> None:
    if as_json:
        print(json.dumps([result.to_dict() for result in results], indent=2))
        return

    for result in results:
        if result.success:
            print(f"  OK    {result.device_name}: {result.path}")
        else:
            print(f"  FAIL  {result.device_name}: {result.message}")

    failed = sum(1 for result in results if not result.success)
    print(f"\n{len(results) - failed} of {len(results)} linker scripts generated")


def run_generate(args: argparse.Namespace) -> int:
    """
    Run generate subcommand.

    Returns:
        Exit code (0 if every script was written, 1 otherwise)
    """
    try:
        devices = load_device_catalog(args.catalog)
        if args.device:
            devices = [find_device(devices, name) for name in args.device]
    except DeviceCatalogError as e:
        logger.error("%s", e)
        return 1

    if not devices:
        logger.warning("No devices in catalog %s", args.catalog)
        return 0

    results = generate_scripts(devices, args.output_dir, settings_from_args(args))
    print_results(results, args.json)
    return 0 if all(result.success for result in results) else 1
