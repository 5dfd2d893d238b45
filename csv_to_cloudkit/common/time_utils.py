"""UTC-focused helpers for request dates and run metadata."""

from __future__ import annotations

from datetime import datetime, timezone

REQUEST_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def format_request_date(moment: datetime) -> str:
    """Second precision, literal ``Z`` suffix. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(REQUEST_DATE_FORMAT)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")
