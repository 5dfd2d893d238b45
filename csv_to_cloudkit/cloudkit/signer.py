"""Server-to-server request signing (ECDSA P-256 over SHA-256).

The signed message is ``<date>:<base64 sha256(body)>:<subpath>`` where the
date is UTC at second precision with a literal ``Z`` suffix. The DER encoded
signature is sent base64 encoded.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from csv_to_cloudkit.common.errors import InvalidKeyError
from csv_to_cloudkit.common.fs import read_bytes
from csv_to_cloudkit.common.time_utils import format_request_date, utc_now


@dataclass(frozen=True)
class SignatureParts:
    date: str
    body_digest_b64: str
    message: str
    signature_b64: str


def body_digest_b64(body: bytes) -> str:
    return base64.b64encode(hashlib.sha256(body).digest()).decode("ascii")


def signing_message(date: str, digest_b64: str, path: str) -> str:
    return f"{date}:{digest_b64}:{path}"


def load_private_key(pem: bytes) -> ec.EllipticCurvePrivateKey:
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyError(f"Not a usable PEM private key: {exc}") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise InvalidKeyError("Private key is not an elliptic curve key")
    if not isinstance(key.curve, ec.SECP256R1):
        raise InvalidKeyError(f"Private key curve must be P-256, got {key.curve.name}")
    return key


class RequestSigner:
    def __init__(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._private_key = private_key
        self._clock = clock

    @classmethod
    def from_pem_file(cls, path: Path, *, clock: Callable[[], datetime] = utc_now) -> "RequestSigner":
        try:
            pem = read_bytes(path)
        except OSError as exc:
            raise InvalidKeyError(f"Unable to read private key file {path}: {exc}") from exc
        return cls(load_private_key(pem), clock=clock)

    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._private_key.public_key()

    def sign(self, body: bytes, path: str, *, now: datetime | None = None) -> SignatureParts:
        date = format_request_date(now if now is not None else self._clock())
        digest = body_digest_b64(body)
        message = signing_message(date, digest, path)
        signature = self._private_key.sign(message.encode("utf-8"), ec.ECDSA(hashes.SHA256()))
        return SignatureParts(
            date=date,
            body_digest_b64=digest,
            message=message,
            signature_b64=base64.b64encode(signature).decode("ascii"),
        )
