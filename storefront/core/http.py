from __future__ import annotations
import logging
import time
from typing import Any, Mapping, Optional
import httpx

DEFAULT_TIMEOUT = 20.0
RETRYABLE_STATUS = (429, 502, 503, 504)

log = logging.getLogger(__name__)

class HttpRetryingClient:
    """httpx client with basic retries/backoff for an upstream JSON API.

    GETs are always retried; POSTs only when `retry=True` is passed, which callers
    do when the request carries an idempotency key.
    """
    def __init__(self, base_url: str = "", headers: Optional[Mapping[str, str]] = None,
                 timeout: float = DEFAULT_TIMEOUT, transport: Optional[httpx.BaseTransport] = None,
                 retries: int = 2, backoff: float = 0.5):
        self._http = httpx.Client(base_url=base_url, timeout=timeout, headers=headers or {}, transport=transport)
        self._retries = retries
        self._backoff = backoff

    def close(self) -> None:
        self._http.close()

    def request(self, method: str, url: str, *, params: Optional[Mapping[str, Any]] = None,
                data: Optional[Mapping[str, Any]] = None, headers: Optional[Mapping[str, str]] = None,
                retry: bool = True) -> httpx.Response:
        attempts = self._retries + 1 if retry else 1
        last_exc: Optional[httpx.HTTPError] = None
        for i in range(attempts):
            try:
                r = self._http.request(method, url, params=params, data=data, headers=headers)
                if r.status_code in RETRYABLE_STATUS:
                    # retryable server / rate limit
                    raise httpx.HTTPStatusError("retryable", request=r.request, response=r)
                r.raise_for_status()
                return r
            except httpx.HTTPStatusError as e:
                last_exc = e
                if e.response.status_code not in RETRYABLE_STATUS or i == attempts - 1:
                    break
            except httpx.TransportError as e:
                last_exc = e
                if i == attempts - 1:
                    break
            delay = self._backoff * (2 ** i)
            log.warning("%s %s failed (%s), retrying in %.2fs", method, url, last_exc, delay)
            time.sleep(delay)
        assert last_exc is not None
        raise last_exc

    def get(self, url: str, *, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return self.request("GET", url, params=params)

    def post(self, url: str, *, data: Optional[Mapping[str, Any]] = None,
             headers: Optional[Mapping[str, str]] = None, retry: bool = False) -> httpx.Response:
        return self.request("POST", url, data=data, headers=headers, retry=retry)
