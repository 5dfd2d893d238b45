"""Canonical JSON encoding of ``records/modify`` request bodies."""

from __future__ import annotations

import json
from typing import Any

from csv_to_cloudkit.common.models import (
    FieldValue,
    LocationField,
    LocationRecord,
    RecordMutation,
    RecordPayload,
    ScalarField,
    WriteOperationEnvelope,
)


def format_coordinate(value: float) -> str:
    # repr is the shortest string that round-trips to the same double.
    return repr(float(value))


def location_fields(record: LocationRecord) -> dict[str, FieldValue]:
    return {
        "country": ScalarField(record.country),
        "city": ScalarField(record.city),
        "name": ScalarField(record.name),
        "information_status": ScalarField(record.status),
        "url": ScalarField(record.url.lower()),
        "coordinates": LocationField(
            latitude=format_coordinate(record.latitude),
            longitude=format_coordinate(record.longitude),
        ),
    }


def build_envelope(record: LocationRecord) -> WriteOperationEnvelope:
    return WriteOperationEnvelope(
        mutation=RecordMutation(
            record=RecordPayload(
                record_name=record.record_name,
                fields=location_fields(record),
            )
        )
    )


def field_to_wire(value: FieldValue) -> dict[str, Any]:
    if value.tag == ScalarField.tag:
        out: dict[str, Any] = {"type": value.type}
        if value.value is not None:
            out["value"] = value.value
        return out
    if value.tag == LocationField.tag:
        return {
            "type": value.type,
            "value": {"latitude": value.latitude, "longitude": value.longitude},
        }
    raise ValueError(f"Unsupported field variant: {value.tag!r}")


def envelope_to_wire(envelope: WriteOperationEnvelope) -> dict[str, Any]:
    record = envelope.mutation.record
    return {
        "operations": [
            {
                "operationType": envelope.mutation.operation_type,
                "record": {
                    "recordName": record.record_name,
                    "recordType": record.record_type,
                    "fields": {name: field_to_wire(value) for name, value in record.fields.items()},
                },
            }
        ],
        "zoneID": dict(envelope.zone_id),
        "atomic": envelope.atomic,
        "numbersAsStrings": envelope.numbers_as_strings,
    }


def encode_envelope(envelope: WriteOperationEnvelope) -> bytes:
    wire = envelope_to_wire(envelope)
    return json.dumps(wire, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def serialize_location(record: LocationRecord) -> bytes:
    return encode_envelope(build_envelope(record))
