"""
Backend Registry

Resolves a caller-supplied backend name to a configured adapter. Selection
happens once per request, before any document work or network call.
"""

from enum import Enum
from typing import Dict, Optional

from src.core.errors import ConfigurationError
from src.services.adapters.base_adapter import BaseBackendAdapter
from src.services.adapters.hosted_model_adapter import HostedModelAdapter
from src.services.adapters.local_model_adapter import LocalModelAdapter
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class BackendType(str, Enum):
    """Closed set of AI backends."""
    HOSTED = "hosted"
    LOCAL = "local"

    @classmethod
    def parse(cls, name: Optional[str]) -> "BackendType":
        """
        Parse a backend name, case-insensitively.

        Accepts the canonical values plus the names the web client sends
        (``Gemini``, ``LMStudio``) and ``HostedModel``/``LocalModel``.

        Raises:
            ConfigurationError: Unknown or missing name
        """
        key = (name or "").strip().lower()
        backend = _ALIASES.get(key)
        if backend is None:
            raise ConfigurationError(
                f"Unknown AI backend: {name!r}",
                user_message="Invalid AI model selected."
            )
        return backend


_ALIASES = {
    "hosted": BackendType.HOSTED,
    "hostedmodel": BackendType.HOSTED,
    "gemini": BackendType.HOSTED,
    "local": BackendType.LOCAL,
    "localmodel": BackendType.LOCAL,
    "lmstudio": BackendType.LOCAL,
}


class BackendRegistry:
    """
    Holds one adapter per backend type.

    Usage:
        registry = BackendRegistry.from_settings(settings)
        adapter = registry.get("Gemini")
    """

    def __init__(self, adapters: Dict[BackendType, BaseBackendAdapter]):
        self.adapters = dict(adapters)

    @classmethod
    def from_settings(cls, settings) -> "BackendRegistry":
        return cls({
            BackendType.HOSTED: HostedModelAdapter(settings),
            BackendType.LOCAL: LocalModelAdapter(settings),
        })

    def get(self, name: Optional[str]) -> BaseBackendAdapter:
        """
        Select and check the adapter for ``name``.

        Raises:
            ConfigurationError: Unknown name, unregistered backend, or
                missing credential
        """
        backend = BackendType.parse(name)
        adapter = self.adapters.get(backend)
        if adapter is None:
            raise ConfigurationError(f"No adapter registered for backend {backend.value}")

        adapter.ensure_configured()
        logger.info(f"Selected backend: {backend.value}", extra={"requested": name})
        return adapter
