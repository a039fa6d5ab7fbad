"""Logging filter that redacts credentials from log output.

The Automate client handles a username/password pair, an optional
two-factor passcode and short-lived bearer tokens. None of these may reach
the logs, including tracebacks of failed login exchanges.

Usage:
    1. Call install_filter() during application startup
    2. Call register_secret() for each sensitive value to redact
    3. All subsequent logs will have secrets replaced with [REDACTED]

Bearer tokens are registered as they are issued, so a token refreshed in
the middle of a session is covered as well.

Example:
    >>> from automate_mcp.logging_security import install_filter, register_secret
    >>> install_filter()
    >>> register_secret("hunter2")
    >>> logging.info("Password: hunter2")  # Logs: Password: [REDACTED]
"""

import logging
import threading
from types import TracebackType
from typing import Final

REDACTED: Final[str] = "[REDACTED]"

_original_get_message = logging.LogRecord.getMessage
_original_format_exception = logging.Formatter.formatException


class SecretFilter(logging.Filter):
    """Logging filter that replaces registered secrets with [REDACTED].

    The message, its arguments and any cached exception text are scrubbed.
    A lock guards the registry because tokens are registered while other
    coroutines may be logging.
    """

    def __init__(self) -> None:
        """Initialize the filter with an empty secrets registry."""
        super().__init__()
        self._secrets: set[str] = set()
        self._lock = threading.Lock()

    def register_secret(self, secret: str) -> None:
        """Register a secret value to be redacted. Empty strings are ignored."""
        if secret:
            with self._lock:
                self._secrets.add(secret)

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact registered secrets from a log record.

        Args:
            record: The log record to filter.

        Returns:
            Always True so that the record is still emitted.
        """
        if record.msg:
            record.msg = self._redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )

        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)

        return True

    def _redact(self, text: str) -> str:
        with self._lock:
            secrets_snapshot = list(self._secrets)

        # Longest first so a secret containing another is fully removed
        for secret in sorted(secrets_snapshot, key=len, reverse=True):
            text = text.replace(secret, REDACTED)
        return text


_filter: SecretFilter | None = None

# Secrets registered before install_filter() was called
_pending_secrets: list[str] = []


def _redacting_get_message(self: logging.LogRecord) -> str:
    """Replacement for LogRecord.getMessage that redacts the formatted message."""
    msg = _original_get_message(self)
    if _filter is not None:
        msg = _filter._redact(msg)
    return msg


def _redacting_format_exception(
    self: logging.Formatter,
    ei: tuple[type[BaseException], BaseException, TracebackType | None] | tuple[None, None, None],
) -> str:
    """Replacement for Formatter.formatException that redacts tracebacks."""
    result = _original_format_exception(self, ei)
    if _filter is not None:
        result = _filter._redact(result)
    return result


def install_filter() -> SecretFilter:
    """Install the secret filter on the root logger.

    Also patches LogRecord.getMessage and Formatter.formatException so that
    secrets interpolated at format time are redacted too. Secrets queued by
    register_secret() before installation are applied now.

    Returns:
        The installed SecretFilter instance.
    """
    global _filter
    if _filter is None:
        _filter = SecretFilter()
        logging.getLogger().addFilter(_filter)

        logging.LogRecord.getMessage = _redacting_get_message  # type: ignore[method-assign]
        logging.Formatter.formatException = _redacting_format_exception  # type: ignore[method-assign]

        for secret in _pending_secrets:
            _filter.register_secret(secret)
        _pending_secrets.clear()

    return _filter


def register_secret(secret: str) -> None:
    """Register a secret value to be redacted from all logs.

    May be called before or after install_filter(); early registrations are
    queued until the filter exists.

    Args:
        secret: The secret value to redact (passwords, passcodes, tokens).
    """
    if not secret:
        return
    if _filter is not None:
        _filter.register_secret(secret)
    else:
        _pending_secrets.append(secret)
