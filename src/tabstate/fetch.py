"""HTTP helpers for populating observables from a server.

Server replies carry an envelope:

    {"completionCode": 0, "completionMessage": "OK", ...payload}

completionCode == 0 means success. Every other outcome (non-zero code,
transport error, bad status, body that is not a JSON object) becomes a
failed FetchResult that says what went wrong, instead of an empty dict
that looks the same as "no data".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger("tabstate.fetch")

ENVELOPE_FIELDS = ("completionCode", "completionMessage")


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    completion_code: int | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def failure(cls, error: str, completion_code: int | None = None) -> "FetchResult":
        return cls(ok=False, error=error, completion_code=completion_code)


def strip_envelope(body: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in body.items() if key not in ENVELOPE_FIELDS}


def parse_envelope(response: httpx.Response) -> FetchResult:
    """Turn an HTTP response into a FetchResult, payload without envelope fields."""
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        return FetchResult.failure(f"HTTP {exc.response.status_code} from {exc.request.url}")
    try:
        body = response.json()
    except ValueError:
        return FetchResult.failure(f"Response from {response.request.url} is not JSON")
    if not isinstance(body, dict):
        return FetchResult.failure(f"Response from {response.request.url} is not a JSON object")

    code = body.get("completionCode")
    if not isinstance(code, int) or isinstance(code, bool):
        code = None  # false, 0.0 and strings are not completion codes
    if code != 0:
        message = body.get("completionMessage") or "missing completion code"
        return FetchResult.failure(str(message), completion_code=code)
    return FetchResult(ok=True, data=strip_envelope(body), completion_code=0)


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    payload: Any = None,
) -> FetchResult:
    """Issue one request and parse its envelope. Never raises for I/O failures."""
    try:
        if payload is None:
            response = await client.request(method, url)
        else:
            response = await client.request(method, url, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("%s %s failed: %s", method, url, exc)
        return FetchResult.failure(f"{type(exc).__name__}: {exc}")

    result = parse_envelope(response)
    if not result.ok:
        logger.warning("%s %s unsuccessful: %s", method, url, result.error)
    return result
