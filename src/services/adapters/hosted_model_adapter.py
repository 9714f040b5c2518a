"""
Hosted Model Adapter (Gemini)

Calls Gemini through the google-genai SDK, either with a Gemini API key or,
when GCP_ENABLED is set, through Vertex AI with a service account.

Generation config is fixed per deployment: temperature 0.7, top_p 0.8,
top_k 40, max_output_tokens 4096 by default (see config/settings.py).
Failures are classified, never retried.
"""

from typing import Any, Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from src.core.errors import (
    ConfigurationError,
    QuotaExceededError,
    TransportError,
    UpstreamError,
    UpstreamFormatError,
)
from src.services.adapters.base_adapter import BaseBackendAdapter
from src.services.prompt_builder import PromptBuilder
from src.utils.error_classifier import is_quota_error
from src.utils.gcp_auth import build_service_account_credentials, parse_service_account_json
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class HostedModelAdapter(BaseBackendAdapter):
    """
    Adapter for the hosted Gemini backend.

    Usage:
        adapter = HostedModelAdapter(settings)
        adapter.ensure_configured()
        raw = await adapter.generate("Renewable energy", source_text=None)
    """

    name = "hosted"
    template_name = "hosted_prompt.txt"

    def __init__(self, settings, client: Optional[Any] = None, prompt_builder: Optional[PromptBuilder] = None):
        """
        Args:
            settings: Application settings
            client: Pre-built genai client (tests inject a fake here)
            prompt_builder: Template renderer, defaults to config/prompts
        """
        super().__init__(settings.HOSTED_TIMEOUT, prompt_builder or PromptBuilder(settings.PROMPT_DIR))
        self.settings = settings
        self.model_name = settings.HOSTED_MODEL_NAME
        self._client = client

    @property
    def uses_vertex(self) -> bool:
        return not self.settings.GEMINI_API_KEY and self.settings.GCP_ENABLED

    def ensure_configured(self) -> None:
        if self._client is not None:
            return

        if self.settings.GEMINI_API_KEY:
            return

        if self.settings.GCP_ENABLED and self.settings.GCP_SERVICE_ACCOUNT_JSON:
            parse_service_account_json(self.settings.GCP_SERVICE_ACCOUNT_JSON)
            return

        logger.error("Hosted backend selected but no credential is configured")
        raise ConfigurationError(
            "GEMINI_API_KEY is not set and Vertex AI is not enabled (GCP_ENABLED + GCP_SERVICE_ACCOUNT_JSON)"
        )

    def _get_client(self):
        if self._client is not None:
            return self._client

        self.ensure_configured()

        if self.settings.GEMINI_API_KEY:
            self._client = genai.Client(api_key=self.settings.GEMINI_API_KEY)
        else:
            info = parse_service_account_json(self.settings.GCP_SERVICE_ACCOUNT_JSON)
            self._client = genai.Client(
                vertexai=True,
                project=self.settings.GCP_PROJECT_ID or info["project_id"],
                location=self.settings.GCP_LOCATION,
                credentials=build_service_account_credentials(self.settings.GCP_SERVICE_ACCOUNT_JSON),
            )

        logger.info(
            f"Gemini client created for {self.model_name}",
            extra={"vertexai": self.uses_vertex}
        )
        return self._client

    def generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.settings.HOSTED_TEMPERATURE,
            top_p=self.settings.HOSTED_TOP_P,
            top_k=self.settings.HOSTED_TOP_K,
            max_output_tokens=self.settings.HOSTED_MAX_OUTPUT_TOKENS,
        )

    async def generate(self, topic: str, source_text: Optional[str] = None) -> str:
        client = self._get_client()
        prompt = self.build_prompt(topic, source_text)

        logger.info(
            f"Sending request to Gemini ({self.model_name})",
            extra={"topic": topic, "prompt_chars": len(prompt), "has_source": bool(source_text)}
        )

        try:
            response = await client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=self.generation_config(),
            )
        except genai_errors.APIError as e:
            raise self._classify_api_error(e) from e
        except httpx.TransportError as e:
            logger.error(f"Cannot reach Gemini: {e}")
            raise TransportError(f"Network error calling Gemini: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            logger.error("Gemini response contained no text")
            raise UpstreamFormatError("Invalid response format from Gemini: no text in response")

        logger.info(f"Received response from Gemini ({len(text)} chars)")
        return text

    def _classify_api_error(self, error: genai_errors.APIError) -> Exception:
        code = getattr(error, "code", None)
        logger.error(f"Gemini API error: {error}", extra={"code": code})

        if code == 429 or is_quota_error(error):
            return QuotaExceededError(f"Gemini quota exceeded: {error}")
        if code in (401, 403) or "api key" in str(error).lower():
            return ConfigurationError(f"Gemini rejected the credential (API key): {error}")
        return UpstreamError(f"Gemini API error: {error}")

    async def health_check(self) -> Dict[str, Any]:
        try:
            self.ensure_configured()
            configured = True
        except ConfigurationError:
            configured = False

        return {
            "backend": self.name,
            "configured": configured,
            "model": self.model_name,
            "vertexai": self.uses_vertex,
        }
