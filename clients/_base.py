"""Base TimeCamp client with HTTP transport and rate-limit retries.

Provides ``BaseTimeCampClient`` -- the async HTTP client for the TimeCamp
third-party REST API.  The API key is sent as ``Authorization: Bearer <key>``
on every request.  Domain clients in this package hold a reference to one
base client and route all network I/O through :meth:`BaseTimeCampClient.request`.

Failure classes surfaced to callers:
    TimeCampAPIError         Non-2xx response, or 429 after retries run out.
    TimeCampTimeoutError     No response within the configured timeout.
    TimeCampConnectionError  Any other transport failure.
"""

from __future__ import annotations

import asyncio
import ipaddress
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

import httpx

from _constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CLIENT_NAME,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT,
    MAX_ERROR_BODY_LEN,
    RATE_LIMIT_STATUS,
)

__all__ = [
    "BaseTimeCampClient",
    "NO_RETRY",
    "RetryPolicy",
    "TimeCampAPIError",
    "TimeCampConnectionError",
    "TimeCampError",
    "TimeCampTimeoutError",
    "format_timecamp_date",
    "to_int",
    "to_records",
]

logger = logging.getLogger("timecamp_mcp.client")

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TimeCampError(Exception):
    """Base class for every error raised by the TimeCamp clients."""


class TimeCampAPIError(TimeCampError):
    """The service answered with a non-success status."""

    def __init__(self, status_code: int, response_data: Any) -> None:
        self.status_code = status_code
        self.response_data = response_data
        if isinstance(response_data, str):
            body = response_data
        else:
            body = json.dumps(response_data, default=str)
        if len(body) > MAX_ERROR_BODY_LEN:
            body = body[:MAX_ERROR_BODY_LEN] + "..."
        super().__init__(f"TimeCamp API error: {status_code} - {body}")

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == RATE_LIMIT_STATUS


class TimeCampTimeoutError(TimeCampError):
    """No response arrived within the configured request timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request timeout after {timeout:g}s")


class TimeCampConnectionError(TimeCampError):
    """The request could not be delivered (DNS, TLS, connection reset...)."""


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetryPolicy:
    """How often a rate-limited call is re-issued.

    ``max_attempts`` counts *additional* attempts, so a call is sent at most
    ``max_attempts + 1`` times.  Only :data:`RATE_LIMIT_STATUS` triggers a retry.
    """

    enabled: bool = True
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    delay_ms: int = DEFAULT_RETRY_DELAY_MS

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")

    @property
    def retries(self) -> int:
        return self.max_attempts if self.enabled else 0


NO_RETRY = RetryPolicy(enabled=False)

# ---------------------------------------------------------------------------
# Shape / value helpers
# ---------------------------------------------------------------------------


def to_int(value: Any, default: int | None = 0) -> int | None:
    """Coerce an API value (``"12"``, ``12``, ``12.0``) to ``int``.

    Returns *default* when the value is missing or not numeric.
    """
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return int(value)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        try:
            return int(float(str(value).strip()))
        except (TypeError, ValueError, OverflowError):
            return default


def to_records(value: Any) -> list[dict[str, Any]]:
    """Normalise a keyed-object-or-array response into a list of dicts.

    TimeCamp returns several listings either as ``{"<id>": {...}}`` or as
    ``[{...}]`` depending on the endpoint and account.  Non-dict entries are
    dropped.
    """
    if isinstance(value, Mapping):
        items: Any = value.values()
    elif isinstance(value, list):
        items = value
    else:
        return []
    return [item for item in items if isinstance(item, dict)]


def format_timecamp_date(value: datetime | str | None = None) -> str:
    """Format a timestamp as TimeCamp expects: ``YYYY-MM-DD HH:MM:SS``.

    ``None`` means now (local time).  Strings are parsed as ISO 8601.
    """
    if value is None:
        moment = datetime.now()
    elif isinstance(value, str):
        moment = datetime.fromisoformat(value)
    else:
        moment = value
    return moment.strftime("%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# BaseTimeCampClient
# ---------------------------------------------------------------------------


class BaseTimeCampClient:
    """Async HTTP client for the TimeCamp third-party API.

    One instance owns one ``httpx.AsyncClient``; calls share no other
    mutable state, so concurrent requests are independent.
    """

    # -- construction -------------------------------------------------------

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client_name: str = DEFAULT_CLIENT_NAME,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("API key is required")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        parsed = urlparse(base_url)
        host = (parsed.hostname or "").lower()
        # Plain HTTP would leak the bearer token.
        if parsed.scheme != "https" and not self._is_loopback(host):
            raise ValueError(
                f"Non-HTTPS base_url is only permitted for localhost. Got: {base_url}"
            )

        self._base_url: str = base_url.rstrip("/")
        self._timeout: float = timeout
        self._client_name: str = client_name or DEFAULT_CLIENT_NAME
        self._http: httpx.AsyncClient = httpx.AsyncClient(
            follow_redirects=False,
            timeout=httpx.Timeout(timeout),
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key.strip()}",
                "User-Agent": self._client_name,
                "X-Client-Name": self._client_name,
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._http.aclose()

    async def __aenter__(self) -> BaseTimeCampClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def client_name(self) -> str:
        return self._client_name

    @property
    def timeout(self) -> float:
        return self._timeout

    @staticmethod
    def _is_loopback(host: str) -> bool:
        """Check if host is a loopback address (localhost, 127.x.x.x, ::1, etc.)."""
        if host in ("localhost",):
            return True
        stripped = host.strip("[]")
        try:
            return ipaddress.ip_address(stripped).is_loopback
        except ValueError:
            return False

    @staticmethod
    def build_v3_endpoint(path: str) -> str:
        """Return the endpoint path for the v3 API, served under the same base URL."""
        return f"v3/{path.lstrip('/')}"

    # -- request execution --------------------------------------------------

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        form: Mapping[str, Any] | None = None,
        retry: RetryPolicy | None = None,
    ) -> Any:
        """Issue one logical API call and return the decoded response body.

        ``json`` and ``form`` are mutually exclusive request bodies.  With a
        *retry* policy, a 429 response is re-sent after ``retry.delay_ms``
        until the policy's attempts are used up.

        Raises:
            TimeCampAPIError: Non-success status (or 429 after retries).
            TimeCampTimeoutError: No response within the timeout.
            TimeCampConnectionError: Other transport failures.
        """
        if json is not None and form is not None:
            raise ValueError("json and form request bodies are mutually exclusive")

        method = method.upper()
        url = f"{self._base_url}/{endpoint.lstrip('/')}"
        query = {key: str(value) for key, value in (params or {}).items() if value is not None}
        if method == "GET" and "format" not in query:
            query["format"] = "json"

        headers: dict[str, str] = {}
        if json is not None:
            headers["Content-Type"] = "application/json"
        elif form is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            form = {key: str(value) for key, value in form.items()}

        retries = retry.retries if retry is not None else 0
        delay_ms = retry.delay_ms if retry is not None else 0
        attempt = 0
        while True:
            attempt += 1
            logger.debug("TimeCamp API %s %s attempt=%d", method, endpoint, attempt)
            try:
                # One deadline per attempt, across every httpx phase.
                async with asyncio.timeout(self._timeout):
                    response = await self._http.request(
                        method,
                        url,
                        params=query or None,
                        json=json,
                        data=form,
                        headers=headers,
                    )
            except (httpx.TimeoutException, TimeoutError) as exc:
                logger.warning("TimeCamp API %s %s timed out after %ss", method, endpoint, self._timeout)
                raise TimeCampTimeoutError(self._timeout) from exc
            except httpx.TransportError as exc:
                logger.warning("TimeCamp API %s %s transport error: %s", method, endpoint, exc)
                raise TimeCampConnectionError(f"TimeCamp request failed: {exc}") from exc

            if response.status_code < 400:
                return self._decode_body(response)

            response_data = self._decode_body(response)
            if response.status_code == RATE_LIMIT_STATUS and attempt <= retries:
                logger.warning(
                    "TimeCamp API %s %s rate limited, retry in %dms (%d/%d)",
                    method,
                    endpoint,
                    delay_ms,
                    attempt,
                    retries,
                )
                await asyncio.sleep(delay_ms / 1000)
                continue

            logger.warning(
                "TimeCamp API %s %s returned status=%d after %d attempt(s)",
                method,
                endpoint,
                response.status_code,
                attempt,
            )
            raise TimeCampAPIError(response.status_code, response_data)

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """Decode a JSON body; empty bodies give ``None``, non-JSON gives the raw text."""
        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            return response.text
