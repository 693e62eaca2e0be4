from __future__ import annotations
import json as _json
from typing import Any, Dict, Optional
import requests

from orgtree.http.errors import (
    RemoteError, UnauthorizedError, ForbiddenError, NotFoundError,
    ThrottleError, ServerError, TransportError, DeserializationError
)
from orgtree.http.throttle import (
    ConcurrencyGate, RETRY_STATUSES, compute_sleep_seconds, sleep_backoff
)


class HttpClient:
    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        max_retries: int = 0,
        *,
        gate: ConcurrencyGate | None = None,
        session=None,
        logger=None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.gate = gate or ConcurrencyGate()
        self._session = session or requests.Session()
        self._log = logger  # optional, expects .debug()

    def _full_url(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        if self.base_url:
            return f"{self.base_url}/{url.lstrip('/')}"
        return url

    def _log_debug(self, msg: str) -> None:
        if self._log:
            self._log.debug(msg)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        full = self._full_url(url)
        attempt = 0

        while True:
            try:
                with self.gate:
                    self._log_debug(f"HTTP {method.upper()} {full}")
                    resp = self._session.request(
                        method=method.upper(),
                        url=full,
                        headers=headers or {},
                        params=params,
                        timeout=self.timeout,
                    )
            except requests.exceptions.RequestException as ex:
                if attempt >= self.max_retries:
                    raise TransportError(full, str(ex)) from ex
                sleep_backoff(compute_sleep_seconds(attempt, None))
                attempt += 1
                continue

            if 200 <= resp.status_code < 300:
                self._log_debug(f"HTTP {resp.status_code} {full}")
                return resp

            # Retryable?
            if resp.status_code in RETRY_STATUSES and attempt < self.max_retries:
                self._log_debug(f"HTTP {resp.status_code} {full} (retry {attempt})")
                sleep_backoff(compute_sleep_seconds(attempt, resp.headers.get("Retry-After")))
                attempt += 1
                continue

            # Map to typed errors
            body_snip = _safe_snip(resp)
            if resp.status_code == 401:
                raise UnauthorizedError(401, full, "Unauthorized", body_snip)
            if resp.status_code == 403:
                raise ForbiddenError(403, full, "Forbidden", body_snip)
            if resp.status_code == 404:
                raise NotFoundError(404, full, "Not Found", body_snip)
            if resp.status_code == 429:
                raise ThrottleError(429, full, "Too Many Requests", body_snip)
            if 500 <= resp.status_code <= 599:
                raise ServerError(resp.status_code, full, "Server error", body_snip)
            raise RemoteError(resp.status_code, full, "HTTP error", body_snip)

    def get_json(self, url: str, **kwargs) -> dict:
        r = self.request("GET", url, **kwargs)
        try:
            data = _json.loads(r.text or "{}")
        except ValueError as ex:
            raise DeserializationError(self._full_url(url), f"response is not JSON: {ex}") from ex
        if not isinstance(data, dict):
            raise DeserializationError(self._full_url(url), "response is not a JSON object")
        return data


def _safe_snip(resp: requests.Response, max_len: int = 400) -> str:
    try:
        txt = resp.text or ""
        return txt[:max_len]
    except Exception:
        return ""
