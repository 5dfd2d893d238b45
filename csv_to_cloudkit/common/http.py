"""HTTP client with timeouts and structured error surfacing."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from csv_to_cloudkit.common.constants import USER_AGENT
from csv_to_cloudkit.common.errors import RemoteError, TransportError


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    payload: Any


def _decode_payload(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class HttpClient:
    def __init__(self, *, timeout: TimeoutConfig | None = None) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status < 400:
            return
        payload = _decode_payload(response)
        server_error_code = None
        reason = None
        if isinstance(payload, dict):
            server_error_code = payload.get("serverErrorCode")
            reason = payload.get("reason")
        detail = f" {server_error_code}: {reason}" if server_error_code else ""
        raise RemoteError(
            f"HTTP status {status} from {url}{detail}",
            status_code=status,
            server_error_code=server_error_code,
            reason=reason,
            payload=payload if payload is not None else getattr(response, "text", None),
        )

    def request_json(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> HttpResponse:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method=method,
                url=url,
                data=body,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        self._raise_for_status(response, url)

        payload = _decode_payload(response)
        if payload is None:
            raise RemoteError(
                f"Invalid JSON payload from {url}",
                status_code=response.status_code,
                payload=getattr(response, "text", None),
            )
        return HttpResponse(status_code=response.status_code, payload=payload)

    def post_json(
        self,
        url: str,
        *,
        body: bytes,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> HttpResponse:
        merged = {"Content-Type": "application/json"}
        if headers:
            merged.update(headers)
        return self.request_json("POST", url, body=body, headers=merged, timeout=timeout)
