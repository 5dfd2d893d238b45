"""CloudKit Web Services connector: build, sign, and send one record per request."""

from __future__ import annotations

import logging
import time
from typing import Any

from csv_to_cloudkit.cloudkit.serializer import serialize_location
from csv_to_cloudkit.cloudkit.signer import RequestSigner
from csv_to_cloudkit.common.config_loader import Settings
from csv_to_cloudkit.common.constants import HEADER_DATE, HEADER_KEY_ID, HEADER_SIGNATURE
from csv_to_cloudkit.common.errors import RecordError, RemoteError
from csv_to_cloudkit.common.http import HttpClient
from csv_to_cloudkit.common.logging import log_event
from csv_to_cloudkit.common.models import LocationRecord, RecordOutcome, RequestState, SignedRequest


MAX_DETAIL_CHARS = 2000


def error_detail(exc: RecordError) -> Any:
    """The error body the service sent back, with raw text bodies truncated."""
    payload = getattr(exc, "payload", None)
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        payload = payload.strip()
        if len(payload) > MAX_DETAIL_CHARS:
            return payload[:MAX_DETAIL_CHARS] + "..."
        return payload or None
    return payload


def _record_level_error(payload: dict[str, Any], status_code: int) -> RemoteError | None:
    for entry in payload.get("records") or []:
        if isinstance(entry, dict) and entry.get("serverErrorCode"):
            return RemoteError(
                f"Record {entry.get('recordName')} rejected: "
                f"{entry['serverErrorCode']}: {entry.get('reason')}",
                status_code=status_code,
                server_error_code=entry["serverErrorCode"],
                reason=entry.get("reason"),
                payload=payload,
            )
    return None


class CloudKitConnector:
    def __init__(
        self,
        key_id: str,
        signer: RequestSigner,
        http: HttpClient,
        settings: Settings,
        *,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.key_id = key_id
        self.signer = signer
        self.http = http
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self.run_id = run_id

    def _log_state(self, record_name: str, state: RequestState, message: str, **fields: Any) -> None:
        level = logging.WARNING if state is RequestState.FAILED else logging.DEBUG
        log_event(
            self.logger,
            message,
            level=level,
            run_id=self.run_id,
            stage="publish",
            record=record_name,
            event="REQUEST_STATE",
            state=state.value,
            **fields,
        )

    def build_request(self, record: LocationRecord) -> SignedRequest:
        body = serialize_location(record)
        self._log_state(record.record_name, RequestState.BUILT, "request body built")

        parts = self.signer.sign(body, self.settings.records_path)
        headers = {
            HEADER_KEY_ID: self.key_id,
            HEADER_DATE: parts.date,
            HEADER_SIGNATURE: parts.signature_b64,
        }
        self._log_state(record.record_name, RequestState.SIGNED, "request signed")
        return SignedRequest(method="POST", url=self.settings.records_url, headers=headers, body=body)

    def send(self, request: SignedRequest, record_name: str) -> dict[str, Any]:
        self._log_state(record_name, RequestState.SENT, "request sent")
        response = self.http.post_json(request.url, body=request.body, headers=request.headers)
        payload = response.payload
        if isinstance(payload, dict):
            error = _record_level_error(payload, response.status_code)
            if error is not None:
                raise error
        return payload

    def write_location(self, record: LocationRecord) -> dict[str, Any]:
        """Publish one record and return the parsed response body.

        Raises ``TransportError`` or ``RemoteError``; nothing is retried.
        """
        request = self.build_request(record)
        return self.send(request, record.record_name)

    def publish(self, record: LocationRecord) -> RecordOutcome:
        """Like ``write_location`` but reports failure as a ``FAILED`` outcome."""
        started = time.monotonic()
        try:
            response = self.write_location(record)
        except RecordError as exc:
            duration_ms = int((time.monotonic() - started) * 1000)
            status_code = getattr(exc, "status_code", None)
            detail = error_detail(exc)
            self._log_state(
                record.record_name,
                RequestState.FAILED,
                str(exc),
                status="error",
                error_code=exc.error_code,
                status_code=status_code,
                duration_ms=duration_ms,
                detail=detail,
            )
            return RecordOutcome(
                record_name=record.record_name,
                state=RequestState.FAILED,
                error_code=exc.error_code,
                error_message=str(exc),
                status_code=status_code,
                error_detail=detail,
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        log_event(
            self.logger,
            "record published",
            run_id=self.run_id,
            stage="publish",
            record=record.record_name,
            event="RECORD_PUBLISHED",
            status="ok",
            state=RequestState.COMPLETED.value,
            duration_ms=duration_ms,
            detail=response,
        )
        return RecordOutcome(record_name=record.record_name, state=RequestState.COMPLETED, response=response)
