"""
Logfire setup for Slidesmith.

Logfire is optional: without LOGFIRE_TOKEN nothing is sent and every module
logs to the console through src.utils.logger.
"""
import os

import logfire

SERVICE_NAME = "slidesmith"

_configured = False


def configure_logfire(force: bool = False) -> bool:
    """
    Configure Logfire once per process.

    Args:
        force: Force reconfiguration even if already configured

    Returns:
        bool: True if Logfire is active
    """
    global _configured

    if _configured and not force:
        return True

    token = os.getenv("LOGFIRE_TOKEN")
    if not token:
        return False

    logfire.configure(
        token=token,
        service_name=SERVICE_NAME,
        service_version=os.getenv("APP_VERSION", "dev"),
        environment=os.getenv("APP_ENV", "development"),
        console=False,
    )
    _configured = True
    return True


def is_configured() -> bool:
    return _configured


def instrument_app(app) -> bool:
    """
    Trace incoming requests and outbound httpx calls (local backend,
    Unsplash). No-op without a token.
    """
    if not is_configured():
        return False

    logfire.instrument_fastapi(app)
    logfire.instrument_httpx()
    logfire.info("FastAPI and httpx instrumentation enabled", service=SERVICE_NAME)
    return True
