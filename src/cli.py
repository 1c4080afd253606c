"""Command-line interface for registry-sync."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from catalog.store import load_catalog
from catalog.write import generate_changeset, generate_scan
from contract.catalog import SCAN_RESULT_JSON
from contract.validation import validate_catalog
from errors import (
    CatalogValidationError,
    EmptyDocumentError,
    EmptyScanError,
    FetchError,
    RegistrySyncError,
)
from rules.config import (
    ConfigError,
    load_config,
    resolve_catalog_dir,
    resolve_output_dir,
)
from scan.fetch import fetch_document, read_document
from sync.client import CatalogClient
from sync.push import sync_catalog
from verify.verify import verify_scan

if TYPE_CHECKING:
    from contract.validation import ValidationMessage

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2
EXIT_EMPTY_SCAN = 3


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root holding registry-sync.toml (default: .)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="registry-sync")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scrape_parser = subparsers.add_parser("scrape", help="Scan the registry document")
    _add_common_paths(scrape_parser)
    scrape_parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for scan_result.json (default: config output dir)",
    )
    scrape_parser.add_argument(
        "--input",
        default=None,
        help="Read the registry document from a file instead of source_url",
    )
    scrape_parser.add_argument(
        "--enrich",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Fetch GitHub metadata for each entry (default: config)",
    )

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Diff the latest scan against the approved catalog"
    )
    _add_common_paths(reconcile_parser)
    reconcile_parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for changeset.json and drafts (default: config output dir)",
    )
    reconcile_parser.add_argument(
        "--scan",
        default=None,
        help=f"Scan result to reconcile (default: <out-dir>/{SCAN_RESULT_JSON})",
    )
    reconcile_parser.add_argument(
        "--catalog-dir",
        default=None,
        help="Approved catalog directory (default: config catalog dir)",
    )
    reconcile_parser.add_argument(
        "--no-stage",
        action="store_true",
        help="Do not write draft records for new and changed entries",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate the approved catalog")
    _add_common_paths(validate_parser)
    validate_parser.add_argument(
        "--catalog-dir",
        default=None,
        help="Approved catalog directory (default: config catalog dir)",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify a stored scan result is reproducible"
    )
    _add_common_paths(verify_parser)
    verify_parser.add_argument(
        "--input",
        default=None,
        help="Registry document to re-scan (default: fetch source_url)",
    )
    verify_parser.add_argument(
        "--scan",
        default=None,
        help=f"Scan result to verify (default: <output dir>/{SCAN_RESULT_JSON})",
    )

    sync_parser = subparsers.add_parser("sync", help="Push approved records to the catalog API")
    _add_common_paths(sync_parser)
    sync_parser.add_argument(
        "--catalog-dir",
        default=None,
        help="Approved catalog directory (default: config catalog dir)",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and list records without sending them",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_path(value: str | None) -> Path | None:
    if value is None:
        return None
    return Path(value).expanduser().resolve()


def _resolve_catalog(root: Path, catalog_dir: str | None) -> Path:
    if catalog_dir is None:
        config = load_config(root)
        return resolve_catalog_dir(root, config.catalog_dir)
    return Path(catalog_dir).expanduser().resolve()


def _report_validation(errors: list[ValidationMessage]) -> None:
    for error in errors:
        sys.stderr.write(f"{error.location()}: {error.message}\n")


def _handle_scrape(
    root: Path, out_dir: str | None, input_path: str | None, enrich: bool | None
) -> int:
    document = read_document(Path(input_path)) if input_path else None
    try:
        summary = generate_scan(
            root=root,
            out_dir=_resolve_path(out_dir),
            document=document,
            enrich=enrich,
        )
    except EmptyScanError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_EMPTY_SCAN
    sys.stdout.write(f"{summary['scan_result']}\n")
    return EXIT_OK


def _handle_reconcile(
    root: Path,
    out_dir: str | None,
    scan: str | None,
    catalog_dir: str | None,
    no_stage: bool,
) -> int:
    try:
        summary = generate_changeset(
            root=root,
            out_dir=_resolve_path(out_dir),
            scan_path=_resolve_path(scan),
            catalog_dir=_resolve_path(catalog_dir),
            stage=not no_stage,
        )
    except CatalogValidationError as exc:
        _report_validation(exc.result.errors)
        return EXIT_FAILED
    except FileNotFoundError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_ERROR
    sys.stdout.write(
        f"new={summary['new_count']} changed={summary['changed_count']} "
        f"unchanged={summary['unchanged_count']} conflicts={summary['conflict_count']} "
        f"absent={summary['absent_count']}\n"
    )
    return EXIT_OK


def _handle_validate(root: Path, catalog_dir: str | None) -> int:
    resolved_catalog_dir = _resolve_catalog(root, catalog_dir)
    result = validate_catalog(resolved_catalog_dir)
    for warning in result.warnings:
        sys.stderr.write(f"warning: {warning.location()}: {warning.message}\n")
    if result.errors:
        _report_validation(result.errors)
        return EXIT_FAILED
    return EXIT_OK


def _handle_verify(root: Path, input_path: str | None, scan: str | None) -> int:
    config = load_config(root)
    if scan is None:
        scan_path = resolve_output_dir(root, config.output_dir) / SCAN_RESULT_JSON
    else:
        scan_path = Path(scan).expanduser().resolve()

    if input_path:
        document = read_document(Path(input_path))
    else:
        document = fetch_document(config.source_url, retry=config.retry)

    try:
        result = verify_scan(
            document=document,
            scan_path=scan_path,
            categories=config.categories,
        )
    except FileNotFoundError as exc:
        sys.stderr.write(f"scan: {scan_path}\n")
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_ERROR
    if not result.ok:
        for label, entries in (
            ("missing", result.missing),
            ("extra", result.extra),
            ("mismatches", result.mismatches),
        ):
            for entry in entries:
                sys.stderr.write(f"{label}: {entry}\n")
        return EXIT_FAILED
    return EXIT_OK


def _handle_sync(root: Path, catalog_dir: str | None, dry_run: bool) -> int:
    config = load_config(root)
    resolved_catalog_dir = _resolve_catalog(root, catalog_dir)
    try:
        records = load_catalog(resolved_catalog_dir)
    except CatalogValidationError as exc:
        _report_validation(exc.result.errors)
        return EXIT_FAILED

    if dry_run:
        report = sync_catalog(records, None, dry_run=True)
    else:
        with CatalogClient.from_config(config.catalog_api, retry=config.retry) as client:
            report = sync_catalog(records, client)

    for identity in report.skipped:
        sys.stdout.write(f"would push: {identity}\n")
    for failure in report.failed:
        sys.stderr.write(f"failed: {failure}\n")
    return EXIT_OK if report.ok else EXIT_FAILED


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()

    try:
        if args.command == "scrape":
            return _handle_scrape(root, args.out_dir, args.input, args.enrich)

        if args.command == "reconcile":
            return _handle_reconcile(
                root, args.out_dir, args.scan, args.catalog_dir, args.no_stage
            )

        if args.command == "validate":
            return _handle_validate(root, args.catalog_dir)

        if args.command == "verify":
            return _handle_verify(root, args.input, args.scan)

        if args.command == "sync":
            return _handle_sync(root, args.catalog_dir, args.dry_run)
    except (ConfigError, FetchError, EmptyDocumentError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_ERROR
    except RegistrySyncError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_FAILED

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
