from __future__ import annotations

import csv
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from csv_to_cloudkit.common.constants import CSV_COLUMNS


@pytest.fixture
def private_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def pem_path(tmp_path: Path, private_key) -> Path:
    path = tmp_path / "eckey.pem"
    path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return path


def location_row(index: int = 0, **overrides) -> dict:
    row = {
        "uuid": f"3f2504e0-4f89-11d3-9a0c-{index:012x}",
        "country": "Portugal",
        "city": "Sintra",
        "name": f"Boulder {index}",
        "url": "HTTPS://Example.com/Spot",
        "latitude": "38.7813",
        "longitude": "-9.4187",
        "status": "open",
    }
    row.update(overrides)
    return row


def write_locations_csv(path: Path, rows: list[dict], headers=CSV_COLUMNS) -> Path:
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(headers), extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return path


@pytest.fixture
def row_factory():
    return location_row


@pytest.fixture
def csv_factory(tmp_path: Path):
    def _make(rows: list[dict], headers=CSV_COLUMNS, name: str = "locations.csv") -> Path:
        return write_locations_csv(tmp_path / name, rows, headers=headers)

    return _make


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.text = text

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def settings():
    import copy

    from csv_to_cloudkit.common.config_loader import settings_from_mapping
    from csv_to_cloudkit.common.constants import DEFAULT_SETTINGS

    return settings_from_mapping(copy.deepcopy(DEFAULT_SETTINGS))
