"""Data models for location records and their CloudKit wire form."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from csv_to_cloudkit.common.constants import DEFAULT_ZONE, OPERATION_TYPE, RECORD_TYPE


@dataclass(frozen=True)
class LocationRecord:
    identifier: uuid.UUID
    country: str
    city: str
    name: str
    url: str
    latitude: float
    longitude: float
    status: str

    @property
    def record_name(self) -> str:
        # Existing records were created with upper-case UUID names.
        return str(self.identifier).upper()


@dataclass(frozen=True)
class ScalarField:
    value: str | None
    type: str = "STRING"

    tag = "scalar"


@dataclass(frozen=True)
class LocationField:
    latitude: str
    longitude: str
    type: str = "LOCATION"

    tag = "location"


FieldValue = Union[ScalarField, LocationField]


@dataclass(frozen=True)
class RecordPayload:
    record_name: str
    fields: dict[str, FieldValue]
    record_type: str = RECORD_TYPE


@dataclass(frozen=True)
class RecordMutation:
    record: RecordPayload
    operation_type: str = OPERATION_TYPE


@dataclass(frozen=True)
class WriteOperationEnvelope:
    """A single-mutation ``records/modify`` request body."""

    mutation: RecordMutation
    zone_id: dict[str, str] = field(default_factory=lambda: {"zoneName": DEFAULT_ZONE})
    atomic: bool = False
    numbers_as_strings: bool = True


class RequestState(str, Enum):
    BUILT = "built"
    SIGNED = "signed"
    SENT = "sent"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class SignedRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: bytes


@dataclass(frozen=True)
class RecordOutcome:
    record_name: str
    state: RequestState
    response: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None
    status_code: int | None = None
    error_detail: Any = None

    @property
    def ok(self) -> bool:
        return self.state is RequestState.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_name": self.record_name,
            "state": self.state.value,
            "response": self.response,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "error_detail": self.error_detail,
            "status_code": self.status_code,
        }
