"""
Logging configuration for Slidesmith using Logfire.

When LOGFIRE_TOKEN is set every logger forwards to Logfire; otherwise a
standard library logger writes to the console.
"""
import logging
import os
from typing import Optional

from src.utils.logfire_config import configure_logfire, is_configured

# Try to configure Logfire once at module import
configure_logfire()


class LogfireLogger:
    """Wrapper to make Logfire work like standard Python logging."""

    def __init__(self, name: str):
        self.name = name

    def _emit(self, method: str, message, args, kwargs, prefix: str = ""):
        import logfire

        if args:
            message = message % args
        kwargs.pop("exc_info", None)
        extra = kwargs.pop("extra", None) or {}
        getattr(logfire, method)(f"[{self.name}] {prefix}{message}", **extra, **kwargs)

    def info(self, message, *args, **kwargs):
        self._emit("info", message, args, kwargs)

    def warning(self, message, *args, **kwargs):
        self._emit("warn", message, args, kwargs)

    warn = warning

    def error(self, message, *args, **kwargs):
        self._emit("error", message, args, kwargs)

    def debug(self, message, *args, **kwargs):
        self._emit("debug", message, args, kwargs)

    def critical(self, message, *args, **kwargs):
        self._emit("error", message, args, kwargs, prefix="CRITICAL: ")

    def exception(self, message, *args, **kwargs):
        self._emit("error", message, args, kwargs, prefix="EXCEPTION: ")

    def setLevel(self, level):
        # No-op for compatibility
        pass


class StandardLogger:
    """Standard Python logger when Logfire is not configured."""

    def __init__(self, name: str, level: Optional[str] = None):
        self.logger = logging.getLogger(name)

        # LOG_LEVEL from environment, default to INFO
        log_level_str = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
        log_level = getattr(logging, log_level_str, logging.INFO)
        self.logger.setLevel(log_level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(log_level)
            handler.setFormatter(logging.Formatter('[%(levelname)s %(name)s] %(message)s'))
            self.logger.addHandler(handler)

    def info(self, message, *args, **kwargs):
        self.logger.info(message, *args, **kwargs)

    def warning(self, message, *args, **kwargs):
        self.logger.warning(message, *args, **kwargs)

    warn = warning

    def error(self, message, *args, **kwargs):
        self.logger.error(message, *args, **kwargs)

    def debug(self, message, *args, **kwargs):
        self.logger.debug(message, *args, **kwargs)

    def critical(self, message, *args, **kwargs):
        self.logger.critical(message, *args, **kwargs)

    def exception(self, message, *args, **kwargs):
        self.logger.exception(message, *args, **kwargs)

    def setLevel(self, level):
        self.logger.setLevel(level)


def setup_logger(name: str, level: Optional[str] = None):
    """
    Set up a logger using Logfire or standard Python logging if not configured.

    Args:
        name: Logger name (usually __name__)
        level: Logging level (used for standard logger)

    Returns:
        LogfireLogger or StandardLogger instance
    """
    if is_configured():
        return LogfireLogger(name)
    return StandardLogger(name, level)
