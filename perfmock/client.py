"""
HTTP client for a running perfmock server.

Wraps httpx with tenacity retries so callers can drive pagination through
injected faults: transport errors and retryable status codes are retried
with exponential backoff, anything else raises `PerfMockClientError`.

Usage:
    from perfmock.client import PerfMockClient

    with PerfMockClient("http://localhost:3000", api_key="test-api-key") as client:
        summary = client.crawl(limit=500)
        print(summary.unique_ids, summary.duplicates)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from perfmock.errors import PerfMockError
from perfmock.utils.logging import get_logger

log = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class PerfMockClientError(PerfMockError):
    """A request failed for good, or the server answered with an error envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class _RetryableResponse(Exception):
    """Internal signal: the server answered with a retryable status."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def _should_retry(exc: BaseException) -> bool:
    return isinstance(exc, (_RetryableResponse, httpx.TransportError))


@dataclass
class Page:
    records: List[Dict[str, Any]]
    offset: int
    limit: int
    has_more: bool
    next_offset: Optional[int]
    total_count: int


@dataclass
class CrawlSummary:
    total_count: int = 0
    records: int = 0
    unique_ids: int = 0
    duplicates: int = 0
    pages: int = 0
    retries: int = 0

    @property
    def complete(self) -> bool:
        return self.unique_ids == self.total_count and self.duplicates == 0


class PerfMockClient:
    """
    Synchronous client for the perfmock API.

    Parameters
    ----------
    base_url : str | None
        Server root, e.g. "http://localhost:3000". Ignored if `http_client` is given.
    http_client : httpx.Client | None
        Pre-built client (tests pass one with a mock transport or TestClient).
    api_key : str | None
        Sent in the `X-API-Key` header when set.
    max_attempts : int
        Attempts per request, including the first.
    wait_seconds : float
        Base for the exponential backoff between attempts.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        api_key: Optional[str] = None,
        max_attempts: int = 5,
        wait_seconds: float = 0.2,
        timeout: float = 60.0,
    ) -> None:
        if http_client is None and base_url is None:
            raise ValueError("Either base_url or http_client is required")
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {"X-API-Key": api_key} if api_key else {}
        self.max_attempts = max_attempts
        self.wait_seconds = wait_seconds
        self.retries = 0

    def __enter__(self) -> "PerfMockClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _log_retry(self, retry_state: RetryCallState) -> None:
        self.retries += 1
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "Retrying request",
            extra={"attempt": retry_state.attempt_number, "reason": str(exc)},
        )

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = self._client.request(method, path, headers=self._headers, **kwargs)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise _RetryableResponse(response)
        return response

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        retrying = Retrying(
            retry=retry_if_exception(_should_retry),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.wait_seconds, max=self.wait_seconds * 10),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            response = retrying(self._send, method, path, **kwargs)
        except _RetryableResponse as exc:
            raise PerfMockClientError(
                f"{method} {path} failed after {self.max_attempts} attempts "
                f"(HTTP {exc.response.status_code})",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TransportError as exc:
            raise PerfMockClientError(
                f"{method} {path} failed after {self.max_attempts} attempts: {exc}"
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise PerfMockClientError(
                f"{method} {path} returned a non-JSON body (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from exc
        if response.is_error or not body.get("success", False):
            raise PerfMockClientError(
                f"{method} {path} returned HTTP {response.status_code}: "
                f"{body.get('error')} ({body.get('message')})",
                status_code=response.status_code,
            )
        return body

    def get_records(self, offset: int = 0, limit: int = 100) -> Page:
        body = self._request("GET", "/api/records", params={"offset": offset, "limit": limit})
        pagination = body["pagination"]
        next_offset = pagination.get("nextOffset")
        return Page(
            records=body.get("data", []),
            offset=int(pagination["offset"]),
            limit=pagination["limit"],
            has_more=pagination["hasMore"],
            next_offset=int(next_offset) if next_offset is not None else None,
            total_count=pagination["totalCount"],
        )

    def iter_pages(self, limit: int = 100) -> Iterator[Page]:
        """Follow `nextOffset` from 0 until the server reports no more records."""
        offset: Optional[int] = 0
        while offset is not None:
            page = self.get_records(offset=offset, limit=limit)
            yield page
            offset = page.next_offset if page.has_more else None

    def crawl(self, limit: int = 100) -> CrawlSummary:
        """Fetch every page and check the id stream for gaps and duplicates."""
        retries_before = self.retries
        summary = CrawlSummary()
        seen: set[str] = set()
        for page in self.iter_pages(limit=limit):
            summary.pages += 1
            summary.total_count = page.total_count
            for record in page.records:
                summary.records += 1
                record_id = record["id"]
                if record_id in seen:
                    summary.duplicates += 1
                seen.add(record_id)
        summary.unique_ids = len(seen)
        summary.retries = self.retries - retries_before
        log.info(
            "Crawl finished",
            extra={
                "pages": summary.pages,
                "records": summary.records,
                "unique_ids": summary.unique_ids,
                "duplicates": summary.duplicates,
                "retries": summary.retries,
            },
        )
        return summary

    def reset(self, total_records: Optional[int] = None, seed: Optional[int] = None) -> Dict[str, Any]:
        payload = {"totalRecords": total_records, "seed": seed}
        return self._request("POST", "/api/reset", json=_without_none(payload))["data"]

    def seed(
        self,
        schema: Optional[Dict[str, Any]] = None,
        total_records: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload = {"schema": schema, "totalRecords": total_records, "seed": seed}
        return self._request("POST", "/api/seed", json=_without_none(payload))["data"]

    def update_middleware(self, **sections: Dict[str, Any]) -> Dict[str, Any]:
        """E.g. `update_middleware(latency={"enabled": True, "maxMs": 50})`."""
        return self._request("POST", "/api/config/middleware", json=sections)["data"]


def _without_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


__all__ = ["CrawlSummary", "Page", "PerfMockClient", "PerfMockClientError"]
