"""Sequential publish loop with an explicit per-record failure policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from csv_to_cloudkit.cloudkit.connector import CloudKitConnector
from csv_to_cloudkit.common.logging import log_event
from csv_to_cloudkit.common.models import LocationRecord, RecordOutcome, SignedRequest


@dataclass
class PublishSummary:
    run_id: str
    outcomes: list[RecordOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    stopped_early: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    @property
    def had_failures(self) -> bool:
        return self.failed > 0


def publish_locations(
    records: Iterable[LocationRecord],
    connector: CloudKitConnector,
    *,
    run_id: str,
    logger: logging.Logger,
    fail_fast: bool = False,
) -> PublishSummary:
    """Publish records one at a time.

    A failed record is logged and the loop moves on, unless ``fail_fast`` is
    set, in which case the remaining records are listed as skipped.
    """
    pending = list(records)
    summary = PublishSummary(run_id=run_id)
    log_event(logger, "publish start", run_id=run_id, stage="publish", event="STAGE_START", status="ok")

    for index, record in enumerate(pending):
        outcome = connector.publish(record)
        summary.outcomes.append(outcome)
        if outcome.ok or not fail_fast:
            continue
        summary.skipped = [remaining.record_name for remaining in pending[index + 1 :]]
        summary.stopped_early = True
        log_event(
            logger,
            f"stopping after failure; {len(summary.skipped)} records not sent",
            level=logging.ERROR,
            run_id=run_id,
            stage="publish",
            record=record.record_name,
            event="FAIL_FAST",
            status="error",
            error_code=outcome.error_code,
        )
        break

    log_event(
        logger,
        f"publish end: {summary.succeeded} ok, {summary.failed} failed",
        run_id=run_id,
        stage="publish",
        event="STAGE_END",
        status="error" if summary.had_failures else "ok",
    )
    return summary


def preview_locations(
    records: Iterable[LocationRecord],
    connector: CloudKitConnector,
    *,
    run_id: str,
    logger: logging.Logger,
) -> list[SignedRequest]:
    """Serialize and sign every record without sending anything."""
    requests_out = []
    for record in records:
        request = connector.build_request(record)
        log_event(
            logger,
            "dry run: request built and signed, not sent",
            run_id=run_id,
            stage="preview",
            record=record.record_name,
            event="DRY_RUN",
            status="ok",
        )
        requests_out.append(request)
    return requests_out
