"""Observability module for optional Pydantic Logfire instrumentation.

If AUTOMATE_LOGFIRE_TOKEN is set, the module will:
- Configure Logfire with the provided token, tagging spans with the
  automate-mcp service name, version and deployment environment
- Instrument HTTPX so every Automate API call is traced
- Instrument the Starlette/FastMCP server for request/response tracing,
  leaving the /health endpoint untraced
- Forward standard library logging to Logfire

Without the token every function is a no-op.
"""

from __future__ import annotations

import logging
from typing import Final

from starlette.applications import Starlette

from automate_mcp.user_agent import get_version

logger = logging.getLogger(__name__)

SERVICE_NAME: Final = "automate-mcp"

# Regex list in the format logfire.instrument_starlette expects
UNTRACED_URLS: Final = "/health$"

_logfire_initialized = False


def initialize_logfire() -> bool:
    """Initialize Pydantic Logfire if a token is configured.

    Returns:
        bool: True if logfire was successfully initialized, False otherwise
    """
    global _logfire_initialized

    if _logfire_initialized:
        logger.debug("Logfire already initialized, skipping")
        return True

    try:
        from automate_mcp.config import get_settings

        settings = get_settings()

        if not settings.logfire_token:
            logger.info("Logfire token not configured, observability disabled")
            return False

        import logfire

        logfire.configure(
            token=settings.logfire_token,
            service_name=SERVICE_NAME,
            service_version=get_version(),
            environment=settings.environment,
        )
        logfire.instrument_httpx()

        # Handler goes on the root logger so the CLI still controls the level
        logging.getLogger().addHandler(logfire.LogfireLoggingHandler())

        _logfire_initialized = True
        logger.info(
            "Logfire initialized successfully",
            extra={"service_name": SERVICE_NAME, "environment": settings.environment},
        )
        return True

    except ImportError:
        logger.warning("Logfire package not installed, observability disabled")
        return False
    except Exception:
        logger.exception("Failed to initialize Logfire")
        return False


def instrument_starlette_app(app: Starlette) -> None:
    """Instrument a Starlette application with Logfire if enabled.

    Args:
        app: The Starlette application instance to instrument
    """
    if not _logfire_initialized:
        logger.debug("Logfire not initialized, skipping Starlette instrumentation")
        return

    try:
        import logfire

        logfire.instrument_starlette(app, excluded_urls=UNTRACED_URLS)
        logger.info("Starlette instrumentation enabled")
    except Exception:
        logger.exception("Failed to instrument Starlette with Logfire")
