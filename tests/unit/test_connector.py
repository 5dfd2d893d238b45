from __future__ import annotations

import base64
import json
import uuid
from datetime import datetime, timezone

import pytest
import requests
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from csv_to_cloudkit.cloudkit.connector import MAX_DETAIL_CHARS, CloudKitConnector
from csv_to_cloudkit.cloudkit.signer import RequestSigner, body_digest_b64
from csv_to_cloudkit.common.errors import RemoteError, TransportError
from csv_to_cloudkit.common.http import HttpClient
from csv_to_cloudkit.common.models import LocationRecord, RecordOutcome, RequestState

FIXED_NOW = datetime(2026, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
RECORD = LocationRecord(
    identifier=uuid.UUID("3f2504e0-4f89-11d3-9a0c-0305e82c3301"),
    country="Portugal",
    city="Sintra",
    name="Penedo da Amizade",
    url="https://example.com/spot",
    latitude=38.7813,
    longitude=-9.4187,
    status="open",
)


@pytest.fixture
def connector(pem_path, settings):
    signer = RequestSigner.from_pem_file(pem_path, clock=lambda: FIXED_NOW)
    return CloudKitConnector("key-123", signer, HttpClient(), settings, run_id="run-test")


def test_build_request_sets_cloudkit_headers(connector, private_key, settings):
    request = connector.build_request(RECORD)

    assert request.method == "POST"
    assert request.url == settings.records_url
    assert request.headers["X-Apple-CloudKit-Request-KeyID"] == "key-123"
    assert request.headers["X-Apple-CloudKit-Request-ISO8601Date"] == "2026-05-01T12:00:00Z"

    message = f"2026-05-01T12:00:00Z:{body_digest_b64(request.body)}:{settings.records_path}"
    private_key.public_key().verify(
        base64.b64decode(request.headers["X-Apple-CloudKit-Request-SignatureV1"]),
        message.encode("utf-8"),
        ec.ECDSA(hashes.SHA256()),
    )


def test_write_location_posts_signed_body(connector, monkeypatch, fake_response):
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return fake_response(200, {"records": [{"recordName": RECORD.record_name, "recordType": "Location"}]})

    monkeypatch.setattr(connector.http.session, "request", fake_request)
    response = connector.write_location(RECORD)

    assert response["records"][0]["recordName"] == RECORD.record_name
    assert seen["url"].endswith("/development/public/records/modify")
    assert json.loads(seen["data"])["operations"][0]["record"]["recordName"] == RECORD.record_name
    assert "X-Apple-CloudKit-Request-SignatureV1" in seen["headers"]


def test_record_level_error_in_success_response_is_remote_error(connector, monkeypatch, fake_response):
    payload = {
        "records": [
            {"recordName": RECORD.record_name, "serverErrorCode": "BAD_REQUEST", "reason": "unknown field"}
        ]
    }
    monkeypatch.setattr(connector.http.session, "request", lambda **_kwargs: fake_response(200, payload))

    with pytest.raises(RemoteError) as excinfo:
        connector.write_location(RECORD)

    assert excinfo.value.server_error_code == "BAD_REQUEST"
    assert excinfo.value.payload == payload


def test_publish_reports_completed_outcome(connector, monkeypatch, fake_response):
    monkeypatch.setattr(connector.http.session, "request", lambda **_kwargs: fake_response(200, {"records": []}))

    outcome = connector.publish(RECORD)

    assert outcome.state is RequestState.COMPLETED
    assert outcome.ok
    assert outcome.response == {"records": []}


def test_publish_reports_remote_failure(connector, monkeypatch, fake_response):
    body = {"serverErrorCode": "AUTHENTICATION_FAILED", "reason": "no auth"}
    monkeypatch.setattr(connector.http.session, "request", lambda **_kwargs: fake_response(421, body))

    outcome = connector.publish(RECORD)

    assert outcome.state is RequestState.FAILED
    assert outcome.error_code == "REMOTE_ERROR"
    assert outcome.status_code == 421
    assert "AUTHENTICATION_FAILED" in outcome.error_message


def test_publish_reports_transport_failure(connector, monkeypatch):
    def boom(**_kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(connector.http.session, "request", boom)

    outcome = connector.publish(RECORD)

    assert outcome.state is RequestState.FAILED
    assert outcome.error_code == TransportError.error_code
    assert outcome.status_code is None


def test_publish_keeps_structured_error_body(connector, monkeypatch, fake_response):
    body = {"uuid": "u-1", "serverErrorCode": "QUOTA_EXCEEDED", "reason": "slow down"}
    monkeypatch.setattr(connector.http.session, "request", lambda **_kwargs: fake_response(409, body))

    outcome = connector.publish(RECORD)

    assert outcome.error_detail == body
    assert outcome.to_dict()["error_detail"] == body


def test_publish_truncates_long_text_error_body(connector, monkeypatch, fake_response):
    text = "<html>" + "x" * (MAX_DETAIL_CHARS * 2) + "</html>"
    monkeypatch.setattr(
        connector.http.session,
        "request",
        lambda **_kwargs: fake_response(502, raises_json=True, text=text),
    )

    outcome = connector.publish(RECORD)

    assert outcome.error_detail.startswith("<html>xxx")
    assert len(outcome.error_detail) == MAX_DETAIL_CHARS + len("...")


def test_completed_outcome_reports_response():
    outcome = RecordOutcome(
        record_name=RECORD.record_name,
        state=RequestState.COMPLETED,
        response={"records": [{"recordChangeTag": "abc"}]},
    )
    assert outcome.to_dict()["response"] == {"records": [{"recordChangeTag": "abc"}]}
    assert outcome.to_dict()["error_detail"] is None
