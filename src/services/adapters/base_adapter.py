"""
Base Backend Adapter - Abstract Interface

Every AI backend turns (topic, source text) into the model's raw text reply.
Fragment extraction and slide admission happen downstream, once, for all
backends.

Lifecycle:
1. Registry selects the adapter and calls ensure_configured()
2. Pipeline awaits generate() under the adapter's request_timeout
3. Raw text goes to the fragment extractor
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from src.services.prompt_builder import PromptBuilder
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class BaseBackendAdapter(ABC):
    """
    Abstract base class for AI backend adapters.

    Subclasses set ``name`` and ``template_name`` and implement
    ensure_configured(), generate() and health_check().
    """

    name: str = "backend"
    template_name: str = ""

    def __init__(self, request_timeout: float, prompt_builder: Optional[PromptBuilder] = None):
        self.request_timeout = request_timeout
        self.prompt_builder = prompt_builder or PromptBuilder()

        logger.info(
            f"{self.__class__.__name__} initialized",
            extra={"backend": self.name, "request_timeout": request_timeout}
        )

    def build_prompt(self, topic: str, source_text: Optional[str] = None) -> str:
        return self.prompt_builder.build(self.template_name, topic, source_text)

    @abstractmethod
    def ensure_configured(self) -> None:
        """
        Check that the backend can be called at all.

        Raises:
            ConfigurationError: Missing credential or unusable settings
        """

    @abstractmethod
    async def generate(self, topic: str, source_text: Optional[str] = None) -> str:
        """
        Ask the model for a deck and return its raw text reply.

        Raises:
            TransportError: Backend unreachable
            UpstreamError: Backend reported a failure (QuotaExceededError for quota)
            UpstreamFormatError: Reply envelope lacks the text
        """

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Report backend readiness for the health endpoint."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
