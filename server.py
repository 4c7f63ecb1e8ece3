"""TimeCamp MCP Server.

Exposes TimeCamp time-tracking operations via the Model Context Protocol.
The server authenticates to TimeCamp with a single API key taken from
TIMECAMP_API_KEY; the domain clients are created in the lifespan and
shared through :mod:`clients`' registry.
"""

from __future__ import annotations

import importlib.metadata
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from _auth import load_client_settings
from clients import TimeCampClientRegistry, set_registry
from clients._base import BaseTimeCampClient
from tools import load_domains

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger("timecamp_mcp.server")

# Configure logging; LOG_LEVEL env var overrides the default INFO level.
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

try:
    _APP_VERSION: str = importlib.metadata.version("timecamp-mcp")
except importlib.metadata.PackageNotFoundError:
    _APP_VERSION = os.environ.get("APP_VERSION", "dev")

# ---------------------------------------------------------------------------
# FastMCP instance
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Create the client registry for the server's lifetime."""
    try:
        settings = load_client_settings()
        base = BaseTimeCampClient(
            settings.api_key,
            settings.base_url,
            timeout=settings.timeout,
            client_name=settings.client_name,
        )
    except (PermissionError, ValueError) as exc:
        logger.critical("Invalid TimeCamp configuration: %s", exc)
        raise SystemExit(1) from exc

    registry = TimeCampClientRegistry(base)
    set_registry(registry)
    logger.info("TimeCamp MCP server %s starting up (base_url=%s)", _APP_VERSION, settings.base_url)
    try:
        yield
    finally:
        logger.info("TimeCamp MCP server shutting down")
        set_registry(None)
        await registry.close()


mcp = FastMCP(name="timecamp-mcp", lifespan=_lifespan)

ENABLED_DOMAINS: list[str] = load_domains(mcp)


# ---------------------------------------------------------------------------
# HTTP transport extras
# ---------------------------------------------------------------------------


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject hardening headers into every HTTP response."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cache-Control"] = "no-store"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


_security_middleware = Middleware(SecurityHeadersMiddleware)


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Return 200 OK for container health checks and load balancers."""
    return JSONResponse({"status": "ok", "version": _APP_VERSION, "domains": ENABLED_DOMAINS})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    if not os.environ.get("TIMECAMP_API_KEY", "").strip():
        raise SystemExit("TIMECAMP_API_KEY environment variable is required.")
    transport = os.environ.get("MCP_TRANSPORT", "stdio").lower().strip()
    if transport == "stdio":
        mcp.run()
        return
    mcp.run(
        transport="http",
        host=os.environ.get("MCP_HOST", "127.0.0.1"),
        port=int(os.environ.get("MCP_PORT", "8100")),
        stateless_http=True,
        middleware=[_security_middleware],
    )


if __name__ == "__main__":
    main()
