"""
Local Model Adapter (LM Studio or any OpenAI-compatible server)

Posts a chat completion to ``{LOCAL_MODEL_URL}/v1/chat/completions`` and
returns ``choices[0].message.content``. Local models are slow: the default
request deadline is 1200 seconds.
"""

from typing import Any, Dict, Optional

import httpx

from src.core.errors import (
    BackendTimeoutError,
    ConfigurationError,
    LocalServiceUnavailableError,
    QuotaExceededError,
    TransportError,
    UpstreamError,
    UpstreamFormatError,
)
from src.services.adapters.base_adapter import BaseBackendAdapter
from src.services.prompt_builder import PromptBuilder
from src.utils.error_classifier import is_quota_error
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a professional presentation designer. Your task is to generate a set of slides. "
    "**You must return a valid JSON array of slides and nothing else. Do not include any "
    "conversational text, explanations, or code block formatting like ```json```.**"
)


class LocalModelAdapter(BaseBackendAdapter):
    """
    Adapter for a local OpenAI-compatible inference server.

    Usage:
        adapter = LocalModelAdapter(settings)
        raw = await adapter.generate("Renewable energy")
    """

    name = "local"
    template_name = "local_prompt.txt"

    def __init__(
        self,
        settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        prompt_builder: Optional[PromptBuilder] = None
    ):
        """
        Args:
            settings: Application settings
            transport: httpx transport override (tests use httpx.MockTransport)
            prompt_builder: Template renderer, defaults to config/prompts
        """
        super().__init__(settings.LOCAL_TIMEOUT, prompt_builder or PromptBuilder(settings.PROMPT_DIR))
        self.settings = settings
        self.base_url = settings.LOCAL_MODEL_URL.rstrip("/")
        self.transport = transport

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def ensure_configured(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"LOCAL_MODEL_URL must be an http(s) URL, got {self.base_url!r}")

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        payload = {
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.settings.LOCAL_TEMPERATURE,
            "max_tokens": self.settings.LOCAL_MAX_TOKENS,
            "stream": False,
        }
        if self.settings.LOCAL_MODEL_NAME:
            payload["model"] = self.settings.LOCAL_MODEL_NAME
        return payload

    async def generate(self, topic: str, source_text: Optional[str] = None) -> str:
        payload = self.build_payload(self.build_prompt(topic, source_text))

        logger.info(
            f"Sending request to local model at {self.completions_url}",
            extra={"topic": topic, "has_source": bool(source_text)}
        )

        try:
            async with self._client(self.request_timeout) as client:
                response = await client.post(self.completions_url, json=payload)
        except httpx.ConnectError as e:
            logger.error(f"Local model server refused connection: {e}", extra={"url": self.base_url})
            raise LocalServiceUnavailableError(
                f"Local model server is not running at {self.base_url} (ECONNREFUSED)"
            ) from e
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"Local model request timed out after {self.request_timeout}s: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Local model request failed: {e}")
            raise TransportError(f"Network error calling local model: {e}") from e

        if response.status_code != 200:
            message = f"Local model server error: {response.status_code} {response.reason_phrase}"
            logger.error(message, extra={"body": response.text[:500]})
            if response.status_code == 429 or is_quota_error(response.text):
                raise QuotaExceededError(message)
            raise UpstreamError(message)

        return self._extract_content(response)

    def _extract_content(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFormatError(f"Invalid response format from local model: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Local model response missing choices[0].message.content")
            raise UpstreamFormatError("Invalid response format from local model") from e

        if not isinstance(content, str):
            raise UpstreamFormatError("Invalid response format from local model: content is not text")

        logger.info(f"Received response from local model ({len(content)} chars)")
        return content

    async def health_check(self) -> Dict[str, Any]:
        status = {"backend": self.name, "url": self.base_url, "reachable": False}
        try:
            async with self._client(5.0) as client:
                response = await client.get(f"{self.base_url}/v1/models")
            status["reachable"] = response.status_code == 200
            if response.status_code != 200:
                logger.warning(
                    f"Local model health check failed: {response.status_code}",
                    extra={"status_code": response.status_code}
                )
        except httpx.HTTPError as e:
            logger.warning(f"Cannot reach local model server: {e}", extra={"url": self.base_url})
        return status
