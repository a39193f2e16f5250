from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import find_dotenv, load_dotenv

from streetmatch.app import (
    import_id_mappings,
    reconcile_complex_catalog,
    reconcile_street_catalog,
    resolve_street,
    search_complexes,
)
from streetmatch.common.logging import configure_logging
from streetmatch.domain.model import EntityType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _existing_file(value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"File not found: {value}")
    return path


def _source_name(value: str) -> str:
    name = value.strip()
    if not name or len(name) > 30:
        raise argparse.ArgumentTypeError("Source name must be 1-30 characters")
    return name


def _add_source(parser: argparse.ArgumentParser, *, required: bool = True) -> None:
    parser.add_argument(
        "--source",
        type=_source_name,
        required=required,
        help="External catalog name the ids belong to",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile and resolve street references")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    streets = subparsers.add_parser(
        "reconcile-streets",
        help="Match an external street catalog and replace its street mappings",
    )
    _add_source(streets)
    streets.add_argument("--source-streets", type=_existing_file, required=True, help="CSV export")
    streets.add_argument("--usage", type=_existing_file, help="CSV of listing counts per street")
    streets.add_argument("--geos", type=_existing_file, required=True, help="Canonical geos JSON")
    streets.add_argument(
        "--streets", type=_existing_file, required=True, help="Canonical streets JSON"
    )
    streets.add_argument("--renames", type=_existing_file, help="Rename history JSON")
    streets.add_argument("--review-out", type=Path, help="Where to write the manual-review JSON")
    streets.add_argument("--dry-run", action="store_true", help="Match without writing mappings")

    complexes = subparsers.add_parser(
        "reconcile-complexes",
        help="Match an external development catalog and replace its development mappings",
    )
    _add_source(complexes)
    complexes.add_argument(
        "--source-complexes", type=_existing_file, required=True, help="Source developments JSON"
    )
    complexes.add_argument(
        "--geos", type=_existing_file, required=True, help="Canonical geos JSON"
    )
    complexes.add_argument(
        "--complexes", type=_existing_file, required=True, help="Canonical developments JSON"
    )
    complexes.add_argument("--dry-run", action="store_true", help="Match without writing mappings")

    mappings = subparsers.add_parser(
        "import-mappings",
        help="Replace stored mappings of one source and entity type from a CSV",
    )
    _add_source(mappings)
    mappings.add_argument(
        "--entity-type",
        type=EntityType,
        choices=list(EntityType),
        required=True,
        help="Kind of entity the ids refer to",
    )
    mappings.add_argument("--file", type=_existing_file, required=True, help="Mappings CSV")

    resolve = subparsers.add_parser("resolve-street", help="Resolve one listing location")
    resolve.add_argument("--geos", type=_existing_file, required=True, help="Canonical geos JSON")
    resolve.add_argument(
        "--streets", type=_existing_file, required=True, help="Canonical streets JSON"
    )
    resolve.add_argument("--complexes", type=_existing_file, help="Canonical developments JSON")
    resolve.add_argument("--lng", type=float, required=True, help="Longitude")
    resolve.add_argument("--lat", type=float, required=True, help="Latitude")
    resolve.add_argument("--text", help="Listing title or description")
    resolve.add_argument("--street-name", help="Structured street name from the listing")
    resolve.add_argument("--geo-id", type=int, help="Canonical geo id hint")
    _add_source(resolve, required=False)

    search = subparsers.add_parser("search-complexes", help="Search developments by name")
    search.add_argument(
        "--complexes", type=_existing_file, required=True, help="Canonical developments JSON"
    )
    search.add_argument("--limit", type=int, default=10, help="Maximum results (%(default)s)")
    search.add_argument("query", help="Name fragment")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "resolve-street":
        if not -180.0 <= args.lng <= 180.0 or not -90.0 <= args.lat <= 90.0:
            raise ValueError(f"Coordinates out of range: lng={args.lng}, lat={args.lat}")
    if args.command == "search-complexes" and args.limit <= 0:
        raise ValueError("--limit must be positive")


def _run(args: argparse.Namespace) -> None:
    if args.command == "reconcile-streets":
        result = reconcile_street_catalog(
            source=args.source,
            source_streets_path=args.source_streets,
            usage_path=args.usage,
            geos_path=args.geos,
            streets_path=args.streets,
            renames_path=args.renames,
            review_path=args.review_out,
            dry_run=args.dry_run,
        )
        for key, value in result.report.summary().items():
            log.info("%s: %s", key, value)
        if result.applied is not None:
            log.info(
                "Applied: deleted=%s inserted=%s failed_chunks=%s",
                result.applied.deleted,
                result.applied.inserted,
                len(result.applied.failures),
            )
    elif args.command == "reconcile-complexes":
        result = reconcile_complex_catalog(
            source=args.source,
            source_complexes_path=args.source_complexes,
            geos_path=args.geos,
            complexes_path=args.complexes,
            dry_run=args.dry_run,
        )
        for key, value in result.report.summary().items():
            log.info("%s: %s", key, value)
    elif args.command == "import-mappings":
        applied = import_id_mappings(
            source=args.source,
            entity_type=args.entity_type,
            path=args.file,
        )
        log.info(
            "Imported: deleted=%s inserted=%s failed_chunks=%s",
            applied.deleted,
            applied.inserted,
            len(applied.failures),
        )
    elif args.command == "resolve-street":
        resolution = resolve_street(
            geos_path=args.geos,
            streets_path=args.streets,
            complexes_path=args.complexes,
            lng=args.lng,
            lat=args.lat,
            text=args.text,
            street_name=args.street_name,
            geo_id=args.geo_id,
            source=args.source,
        )
        street = resolution.street
        log.info(
            "geo=%s complex=%s street=%s method=%s confidence=%.2f",
            resolution.geo_id,
            resolution.complex_id,
            street.street_id,
            street.method,
            street.confidence,
        )
    elif args.command == "search-complexes":
        found = search_complexes(complexes_path=args.complexes, query=args.query, limit=args.limit)
        for complex_ in found:
            log.info("%s\t%s", complex_.id, complex_.name)
        log.info("%s developments found", len(found))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point; also the `streetmatch` console script."""
    load_dotenv(find_dotenv(usecwd=True))
    signal(SIGINT, sigint_handler)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except Exception:
        log.exception("Fatal error while running %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
