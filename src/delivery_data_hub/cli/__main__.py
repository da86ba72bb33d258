"""
Unified CLI entry point for DeliveryDataHub.

Usage:
    python -m delivery_data_hub.cli <command> [options]

Available commands:
    dimensions   - Resolve and print dimension entities

Examples:
    # Active companies
    python -m delivery_data_hub.cli dimensions companies

    # Brands of two companies, as of January 2026
    python -m delivery_data_hub.cli dimensions brands --company-id 42 --company-id 57 --as-of 2026-01-01

    # Restaurants of one brand (any of its portal ids)
    python -m delivery_data_hub.cli dimensions restaurants --brand-id 311
"""

import argparse
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="delivery_data_hub.cli",
        description="DeliveryDataHub CLI - dimension entity resolution",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
        help="Command to execute",
    )

    subparsers.add_parser(
        "dimensions",
        help="Resolve and print dimension entities",
        description="Resolve companies, brands, areas, restaurants or portals",
        add_help=False,  # Let the delegated module handle help
    )

    args, remaining_args = parser.parse_known_args(argv)

    if args.command == "dimensions":
        from delivery_data_hub.cli.dimensions import main as dimensions_main

        return dimensions_main(remaining_args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
