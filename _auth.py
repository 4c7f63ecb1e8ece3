"""API-key configuration and shared error handling for MCP tools."""

from __future__ import annotations

import functools
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ParamSpec, TypeVar

from fastmcp.exceptions import ToolError

from _constants import DEFAULT_BASE_URL, DEFAULT_CLIENT_NAME, DEFAULT_TIMEOUT
from clients._base import TimeCampAPIError, TimeCampError, TimeCampTimeoutError

logger = logging.getLogger("timecamp_mcp.server")

P = ParamSpec("P")
R = TypeVar("R")


@dataclass(frozen=True)
class ClientSettings:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    client_name: str = DEFAULT_CLIENT_NAME


def load_client_settings() -> ClientSettings:
    """Read TIMECAMP_* environment variables.

    Raises:
        PermissionError: If TIMECAMP_API_KEY is missing.
        ValueError: If TIMECAMP_TIMEOUT is not a positive number.
    """
    api_key = os.environ.get("TIMECAMP_API_KEY", "").strip()
    if not api_key:
        raise PermissionError("TIMECAMP_API_KEY is not set.")

    raw_timeout = os.environ.get("TIMECAMP_TIMEOUT", "").strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError as exc:
        raise ValueError(f"TIMECAMP_TIMEOUT must be a number, got {raw_timeout!r}") from exc
    if timeout <= 0:
        raise ValueError("TIMECAMP_TIMEOUT must be > 0")

    return ClientSettings(
        api_key=api_key,
        base_url=os.environ.get("TIMECAMP_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL,
        timeout=timeout,
        client_name=os.environ.get("TIMECAMP_CLIENT_NAME", DEFAULT_CLIENT_NAME).strip()
        or DEFAULT_CLIENT_NAME,
    )


def describe_error(exc: TimeCampError) -> str:
    """User-facing message for a client error."""
    if isinstance(exc, TimeCampTimeoutError):
        return "TimeCamp did not respond in time. Please try again."
    if isinstance(exc, TimeCampAPIError):
        if exc.is_rate_limited:
            return "TimeCamp rate limit reached. Please wait a moment and try again."
        if exc.status_code in (401, 403):
            return f"TimeCamp rejected the API key (HTTP {exc.status_code})."
        return str(exc)
    return str(exc)


def tool_error_handler(
    error_message: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that wraps MCP tool functions with standard error handling.

    Converts PermissionError, ValueError and TimeCampError to ToolError
    (preserving a readable message), and catches all other exceptions with
    a generic message.
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except ToolError:
                raise
            except PermissionError as exc:
                raise ToolError(str(exc)) from exc
            except ValueError as exc:
                raise ToolError(str(exc)) from exc
            except TimeCampError as exc:
                logger.warning("%s failed: %s", fn.__name__, exc)
                raise ToolError(describe_error(exc)) from exc
            except Exception:
                logger.exception("%s failed", fn.__name__)
                raise ToolError(error_message) from None

        return wrapper

    return decorator
