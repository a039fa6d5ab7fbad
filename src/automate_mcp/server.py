"""ConnectWise Automate MCP server implementation.

This module boots and exposes the FastMCP server. Importing the module
instantiates the server, registers the Automate tools, and makes the ASGI
application available so that the same code path can be reused by the CLI,
tests, and uvicorn runners.

Key Components:
    - app (fastmcp.FastMCP): Core MCP server instance with every Automate
      tool registered.
    - health_check(): Lightweight `/health` endpoint used by load-balancers
      and readiness checks.
    - http_app (Starlette): ASGI application created from `app`.

Usage:
    When running under an HTTP server such as Uvicorn:

    ```bash
    uvicorn automate_mcp.server:http_app --host 127.0.0.1 --port 8000
    ```

Dependencies:
    fastmcp: Framework that implements the MCP protocol.
    starlette: Underlying ASGI toolkit used by FastMCP for HTTP exposure.
"""

import contextlib

import fastmcp
from fastmcp.server.http import StarletteWithLifespan
from starlette.requests import Request
from starlette.responses import JSONResponse

from automate_mcp.config import Settings, get_settings
from automate_mcp.observability import initialize_logfire, instrument_starlette_app
from automate_mcp.tools.analytics import (
    CHECK_COMPUTERS_EXIST_DESCRIPTION,
    GET_COMPUTERS_SUMMARY_DESCRIPTION,
    GET_OFFLINE_COMPUTERS_DESCRIPTION,
    GET_STALE_COMPUTERS_DESCRIPTION,
    check_computers_exist,
    get_computers_summary,
    get_offline_computers,
    get_stale_computers,
)
from automate_mcp.tools.computers import (
    GET_COMPUTER_DESCRIPTION,
    GET_COMPUTER_SOFTWARE_DESCRIPTION,
    GET_COMPUTERS_BY_CLIENT_DESCRIPTION,
    GET_COMPUTERS_DESCRIPTION,
    get_computer,
    get_computer_software,
    get_computers,
    get_computers_by_client,
)
from automate_mcp.tools.directory import (
    GET_CLIENT_DESCRIPTION,
    GET_CLIENTS_DESCRIPTION,
    GET_GROUP_DESCRIPTION,
    GET_GROUPS_DESCRIPTION,
    GET_LOCATION_DESCRIPTION,
    GET_LOCATIONS_DESCRIPTION,
    get_client,
    get_clients,
    get_group,
    get_groups,
    get_location,
    get_locations,
)

# Initialize Pydantic Logfire observability if configured
initialize_logfire()

app: fastmcp.FastMCP[None] = fastmcp.FastMCP("ConnectWiseAutomateMCP")

# Register MCP tools
app.tool(description=GET_COMPUTERS_DESCRIPTION)(get_computers)
app.tool(description=GET_COMPUTER_DESCRIPTION)(get_computer)
app.tool(description=GET_COMPUTERS_BY_CLIENT_DESCRIPTION)(get_computers_by_client)
app.tool(description=GET_COMPUTER_SOFTWARE_DESCRIPTION)(get_computer_software)
app.tool(description=GET_CLIENTS_DESCRIPTION)(get_clients)
app.tool(description=GET_CLIENT_DESCRIPTION)(get_client)
app.tool(description=GET_LOCATIONS_DESCRIPTION)(get_locations)
app.tool(description=GET_LOCATION_DESCRIPTION)(get_location)
app.tool(description=GET_GROUPS_DESCRIPTION)(get_groups)
app.tool(description=GET_GROUP_DESCRIPTION)(get_group)
app.tool(description=GET_COMPUTERS_SUMMARY_DESCRIPTION)(get_computers_summary)
app.tool(description=GET_OFFLINE_COMPUTERS_DESCRIPTION)(get_offline_computers)
app.tool(description=GET_STALE_COMPUTERS_DESCRIPTION)(get_stale_computers)
app.tool(description=CHECK_COMPUTERS_EXIST_DESCRIPTION)(check_computers_exist)


@app.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok"})


settings = None

# Use get_settings to ensure usage of lru_cache decorator.
with contextlib.suppress(BaseException):
    settings = get_settings()


def get_http_app(app: fastmcp.FastMCP, settings: Settings | None) -> StarletteWithLifespan:
    """Returns a http_app using environment variable settings."""
    return (
        app.http_app(transport=settings.transport_mode, stateless_http=settings.stateless_http)
        if settings and settings.transport_mode in ("streamable-http", "http")
        # stateless_http has no effect with the sse transport, which is also
        # the fallback when settings could not be loaded.
        else app.http_app(transport="sse")
    )


http_app = get_http_app(app, settings)

# Instrument the Starlette app with Logfire if enabled
instrument_starlette_app(http_app)
