"""JSON HTTP client for the catalog backend API."""

from __future__ import annotations

import asyncio
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Protocol, Sequence

import requests

from catalog_client.api.errors import NetworkFailure, parse_error_envelope
from catalog_client.core.config import ApiConfig
from catalog_client.core.logging import new_correlation_id

LOGGER = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class ApiClientProtocol(Protocol):
    """Protocol describing the request surface used by controllers."""

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        token: str | None = None,
        params: QueryParams | None = None,
    ) -> Any:
        """Execute one API call and return the decoded JSON body."""


def unwrap_data(payload: Any) -> Any:
    """Return the ``data`` member of a success envelope."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def unwrap_meta(payload: Any) -> dict[str, Any]:
    """Return the ``meta`` member of a success envelope, or an empty dict."""
    if isinstance(payload, dict) and isinstance(payload.get("meta"), dict):
        return payload["meta"]
    return {}


@dataclass(frozen=True)
class _RawResponse:
    status_code: int
    text: str


class ApiClient:
    """Async facade over a blocking ``requests.Session``.

    Each call runs on a small thread pool so the event loop never blocks on
    network I/O. No retries are attempted; failures propagate to the caller.
    """

    def __init__(
        self,
        config: ApiConfig,
        *,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize HTTP session and worker pool."""
        self._base_url = config.base_url.rstrip("/")
        self._timeout = config.timeout_seconds
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(
            max_workers=config.http_workers, thread_name_prefix="catalog-http"
        )

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        token: str | None = None,
        params: QueryParams | None = None,
    ) -> Any:
        """Execute one API call and return the decoded JSON body.

        Returns ``None`` for empty bodies. Raises ``ApiFailure`` on non-2xx
        responses and ``NetworkFailure`` when the call cannot complete.
        """
        verb = method.upper()
        correlation_id = new_correlation_id()
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Request-ID": correlation_id,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        data = json.dumps(body) if body is not None else None

        loop = asyncio.get_running_loop()
        call = partial(
            self._send,
            verb,
            f"{self._base_url}{path}",
            headers=headers,
            data=data,
            params=list(params) if params else None,
        )
        response = await loop.run_in_executor(self._executor, call)

        LOGGER.info(
            "api_call_completed",
            extra={"method": verb, "path": path, "status_code": response.status_code},
        )
        if not 200 <= response.status_code < 300:
            raise parse_error_envelope(response.text, response.status_code)
        if not response.text.strip():
            return None
        try:
            return json.loads(response.text)
        except ValueError as exc:
            raise NetworkFailure(f"Invalid JSON response from {path}") from exc

    def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        data: str | None,
        params: list[tuple[str, str]] | None,
    ) -> _RawResponse:
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                data=data,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.warning("api_call_failed", extra={"method": method, "path": url})
            raise NetworkFailure(str(exc) or "Network request failed") from exc
        return _RawResponse(status_code=response.status_code, text=response.text)

    async def health(self) -> dict[str, Any]:
        """Return backend health payload."""
        data = unwrap_data(await self.request("/health"))
        return data if isinstance(data, dict) else {}

    def close(self) -> None:
        """Release worker threads and pooled connections."""
        self._executor.shutdown(wait=False)
        self._session.close()
