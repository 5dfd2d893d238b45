"""Publish location rows from a CSV file to CloudKit Web Services."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from csv_to_cloudkit.cloudkit.connector import CloudKitConnector
from csv_to_cloudkit.cloudkit.signer import RequestSigner
from csv_to_cloudkit.common.config_loader import load_settings
from csv_to_cloudkit.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from csv_to_cloudkit.common.errors import PublishError
from csv_to_cloudkit.common.http import HttpClient, TimeoutConfig
from csv_to_cloudkit.common.ids import generate_run_id
from csv_to_cloudkit.common.logging import build_logger, log_event
from csv_to_cloudkit.ingest.csv_reader import read_locations
from csv_to_cloudkit.pipeline.publish import preview_locations, publish_locations
from csv_to_cloudkit.pipeline.reports import write_run_summary


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--key-id", "--ck-key-id", dest="key_id", required=True, help="CloudKit key ID to use")
    parser.add_argument("--private-key-file-path", required=True, help="Private key file path")
    parser.add_argument("--csv-file-path", required=True, help="CSV file path")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--config-overlay", default=None, help="YAML settings merged over --config")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--report-path", default=None)
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first record that fails")
    parser.add_argument("--dry-run", action="store_true", help="Build and sign requests without sending them")
    args = parser.parse_args(argv)
    if args.dry_run and args.report_path:
        parser.error("--report-path cannot be combined with --dry-run; nothing is sent to report on")
    return args


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    logger = build_logger(
        run_id,
        log_path=Path(args.log_file) if args.log_file else None,
        level=args.log_level,
    )

    try:
        settings = load_settings(
            Path(args.config) if args.config else None,
            overlay_path=Path(args.config_overlay) if args.config_overlay else None,
        )
        if args.fail_fast:
            settings = replace(settings, fail_fast=True)

        records = read_locations(Path(args.csv_file_path), max_records=settings.max_records)
        log_event(
            logger,
            f"loaded {len(records)} records",
            run_id=run_id,
            stage="ingest",
            event="INPUT_LOADED",
            status="ok",
        )
        signer = RequestSigner.from_pem_file(Path(args.private_key_file_path))
    except PublishError as exc:
        log_event(
            logger,
            str(exc),
            level=logging.ERROR,
            run_id=run_id,
            stage="setup",
            event="RUN_ABORTED",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL

    timeout = TimeoutConfig(connect=settings.connect_timeout, read=settings.read_timeout)
    with HttpClient(timeout=timeout) as http:
        connector = CloudKitConnector(args.key_id, signer, http, settings, logger=logger, run_id=run_id)

        if args.dry_run:
            for request in preview_locations(records, connector, run_id=run_id, logger=logger):
                sys.stdout.write(request.body.decode("utf-8") + "\n")
            return EXIT_SUCCESS

        summary = publish_locations(
            records,
            connector,
            run_id=run_id,
            logger=logger,
            fail_fast=settings.fail_fast,
        )

    if args.report_path:
        write_run_summary(Path(args.report_path), summary, records_url=settings.records_url)

    if summary.had_failures:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
