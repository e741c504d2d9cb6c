from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from walletgraph.adapters.http.rate_limiter import SimpleRateLimiter, backoff_sleep
from walletgraph.core.errors import (
    ConfigurationError,
    DataSourceError,
    InvalidAddress,
    UpstreamRateLimited,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)


class JsonHttpClient:
    """
    requests.Session wrapper shared by every upstream adapter.

    - paces calls with SimpleRateLimiter
    - retries timeouts, 429 and 5xx with jittered backoff
    - maps final failures onto the error taxonomy
    - returns None for 404 (a normal "not found" for lookup services)
    """

    def __init__(
        self,
        base_url: str,
        timeout_sec: float,
        max_retries: int = 1,
        requests_per_sec: float = 5.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        name: str = "upstream",
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._max_retries = max_retries
        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()
        if headers:
            self._session.headers.update(headers)
        self._name = name

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        return self._call("GET", path, params=params, timeout=timeout)

    def post(
        self,
        path: str,
        json_body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        return self._call("POST", path, params=params, json_body=json_body, timeout=timeout)

    # ---------- internal ----------

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _call(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = self._url(path)
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            last_attempt = attempt == self._max_retries - 1
            try:
                self._rl.wait()
                resp = self._session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    timeout=timeout or self._timeout,
                )
            except requests.Timeout as e:
                last_err = UpstreamTimeout(f"{self._name} timed out: {e}")
            except requests.RequestException as e:
                last_err = DataSourceError(f"{self._name} request failed: {e}")
            else:
                status = resp.status_code
                if status == 404:
                    return None
                if status in (401, 403):
                    raise ConfigurationError(f"{self._name} rejected credentials (HTTP {status})")
                if status == 400:
                    raise InvalidAddress(f"{self._name} rejected request (HTTP 400)")
                if status == 429:
                    last_err = UpstreamRateLimited(f"{self._name} rate limited")
                elif status >= 500:
                    last_err = DataSourceError(f"{self._name} unavailable (HTTP {status})")
                elif status >= 400:
                    raise DataSourceError(f"{self._name} returned HTTP {status}")
                else:
                    try:
                        return resp.json()
                    except ValueError as e:
                        raise DataSourceError(f"{self._name} returned invalid JSON") from e

            logger.debug("%s attempt %d/%d failed: %s", self._name, attempt + 1, self._max_retries, last_err)
            if not last_attempt:
                backoff_sleep(attempt)

        if last_err is None:
            raise DataSourceError(f"{self._name} failed after {self._max_retries} attempts")
        raise last_err
