"""
CLI for dimension entity resolution.

Prints the resolved entities of one type as JSON lines (one entity per line).
The ``all`` entity prints a single JSON object with companies, brands,
restaurants and portals.

Usage:
    # Active companies
    python -m delivery_data_hub.cli.dimensions companies

    # Brands of a company, resolved as of a past month
    python -m delivery_data_hub.cli.dimensions brands --company-id 42 --as-of 2025-12-01

    # Restaurants of a brand within one area
    python -m delivery_data_hub.cli.dimensions restaurants --brand-id 311 --area-id 3

    # One restaurant by any of its portal ids
    python -m delivery_data_hub.cli.dimensions restaurants --id 1207

    # Restaurants including soft-deleted ones, as the dashboard bundle does
    python -m delivery_data_hub.cli.dimensions restaurants --include-deleted
"""

from __future__ import annotations

import argparse
import json
import re
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from delivery_data_hub.config import Settings, get_settings
from delivery_data_hub.domain.dimensions import (
    DimensionService,
    IdFilter,
    effective_company_filter,
    find_entity,
)
from delivery_data_hub.domain.protocols import DimensionSource
from delivery_data_hub.io.connectors import SourceQueryFailed, SqlDimensionSource
from delivery_data_hub.utils.logging import get_logger

logger = get_logger(__name__)

ENTITIES = ("companies", "brands", "areas", "restaurants", "portals", "all")

_PERIOD_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _period(value: str) -> str:
    if not _PERIOD_PATTERN.match(value):
        raise argparse.ArgumentTypeError(
            f"invalid period '{value}', expected YYYY-MM-DD (e.g. 2026-01-01)"
        )
    return value


def _id_filter(values: Optional[List[str]]) -> IdFilter:
    if not values:
        return IdFilter.any()
    return IdFilter.of(values)


def build_source(settings: Settings) -> DimensionSource:
    """Source used by the CLI; tests replace this with an in-memory source."""
    return SqlDimensionSource.from_settings(settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="delivery_data_hub.cli dimensions",
        description="Resolve dimension entities and print them as JSON lines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("entity", choices=ENTITIES, help="Entity type to resolve")
    parser.add_argument(
        "--company-id",
        action="append",
        dest="company_ids",
        metavar="ID",
        help="Restrict to a company (repeatable)",
    )
    parser.add_argument(
        "--area-id",
        action="append",
        dest="area_ids",
        metavar="ID",
        help="Restrict restaurants to a business area (repeatable)",
    )
    parser.add_argument(
        "--brand-id",
        action="append",
        dest="brand_ids",
        metavar="ID",
        help="Restrict restaurants to the companies of a brand (repeatable)",
    )
    parser.add_argument(
        "--as-of",
        type=_period,
        default=None,
        metavar="YYYY-MM-DD",
        help="Ignore snapshots newer than this month (default: latest)",
    )
    parser.add_argument(
        "--id",
        dest="entity_id",
        default=None,
        help="Print only the entity containing this id (any portal id)",
    )
    parser.add_argument(
        "--include-deleted",
        action="store_true",
        help="Keep soft-deleted brands, restaurants and portals (flagged deleted)",
    )
    return parser


def _resolve(service: DimensionService, args: argparse.Namespace) -> List[Any]:
    company_ids = _id_filter(args.company_ids)

    if args.entity == "companies":
        return service.fetch_companies(as_of=args.as_of, company_ids=company_ids)
    if args.entity == "brands":
        return service.fetch_brands(
            company_ids=company_ids,
            as_of=args.as_of,
            include_deleted=args.include_deleted,
        )
    if args.entity == "areas":
        return service.fetch_areas()
    if args.entity == "portals":
        return service.fetch_portals(include_deleted=args.include_deleted)

    brand_ids = _id_filter(args.brand_ids)
    if brand_ids.is_restricted:
        brands = service.fetch_brands(company_ids=company_ids, as_of=args.as_of)
        company_ids = effective_company_filter(brand_ids, brands, company_ids)
    return service.fetch_restaurants(
        company_ids=company_ids,
        area_ids=_id_filter(args.area_ids),
        as_of=args.as_of,
        include_deleted=args.include_deleted,
    )


def _print_json(payload: Dict[str, Any], write: Callable[[str], Any]) -> None:
    write(json.dumps(payload, ensure_ascii=False) + "\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for configuration or query failures,
        2 when ``--id`` matches no entity).
    """
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
        source = build_source(settings)
    except (ValueError, SQLAlchemyError) as e:
        print(f"Failed to load settings: {e}", file=sys.stderr)
        return 1

    service = DimensionService(source, settings)
    write = sys.stdout.write

    try:
        if args.entity == "all":
            bundle = service.fetch_all_dimensions(
                company_ids=_id_filter(args.company_ids), as_of=args.as_of
            )
            _print_json(bundle.model_dump(mode="json"), write)
            return 0

        entities = _resolve(service, args)
    except SourceQueryFailed as e:
        logger.error("cli.dimensions_failed", entity=args.entity, **e.to_dict())
        print(f"Dimension query failed: {e}", file=sys.stderr)
        return 1

    if args.entity_id is not None:
        entity = find_entity(entities, args.entity_id)
        if entity is None:
            print(
                f"No {args.entity} entity contains id {args.entity_id}",
                file=sys.stderr,
            )
            return 2
        entities = [entity]

    for entity in entities:
        _print_json(entity.model_dump(mode="json"), write)
    return 0


if __name__ == "__main__":
    sys.exit(main())
