"""Run report output."""

from __future__ import annotations

from pathlib import Path

from csv_to_cloudkit.common.fs import write_json
from csv_to_cloudkit.pipeline.publish import PublishSummary


def build_run_summary(summary: PublishSummary, *, records_url: str) -> dict:
    status = "success"
    if summary.had_failures:
        status = "error" if summary.succeeded == 0 else "partial"
    return {
        "run_id": summary.run_id,
        "status": status,
        "endpoint": records_url,
        "totals": {
            "attempted": len(summary.outcomes),
            "succeeded": summary.succeeded,
            "failed": summary.failed,
            "skipped": len(summary.skipped),
        },
        "stopped_early": summary.stopped_early,
        "records": [outcome.to_dict() for outcome in summary.outcomes],
        "skipped_records": list(summary.skipped),
    }


def write_run_summary(path: Path, summary: PublishSummary, *, records_url: str) -> Path:
    write_json(path, build_run_summary(summary, records_url=records_url))
    return path
