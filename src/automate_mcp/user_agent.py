"""User-Agent string generation for HTTP requests.

Every request sent to the Automate API carries the same User-Agent so that
server-side audit logs can attribute traffic to this integration and its
version.
"""

import logging
from functools import cache

logger = logging.getLogger(__name__)


@cache
def get_version() -> str:
    """Retrieve the package version string.

    Returns:
        Semantic version string (e.g., "0.3.0"), or "unknown" if unavailable.
    """
    try:
        from automate_mcp import __version__

        logger.debug("Retrieved version from __version__", extra={"version": __version__})
        return __version__

    except (ImportError, AttributeError):
        logger.debug("Could not retrieve __version__ from automate_mcp package")
        return "unknown"


@cache
def get_user_agent() -> str:
    """Construct the User-Agent header value for HTTP requests.

    Follows the pattern ``automate-mcp/<version>``.
    """
    user_agent = f"automate-mcp/{get_version()}"
    logger.debug("Built User-Agent string", extra={"user_agent": user_agent})
    return user_agent
