"""LLM client wrapper for an OpenAI-compatible chat completions endpoint."""

import os
import re

import httpx
import structlog
import yaml

from openhouse.errors import UpstreamServiceError
from openhouse.services.error_translator import ErrorTranslator

logger = structlog.get_logger(__name__)

DEFAULT_PROVIDER = {
    "type": "gemini",
    "base_url": "https://generativelanguage.googleapis.com/v1beta/openai",
    "api_key": "${env.GEMINI_API_KEY}",
    "model": "gemini-2.0-flash-exp",
    "temperature": 0.7,
    "max_tokens": 2048,
}

_ENV_PATTERN = re.compile(r"\$\{env\.([^}]+)\}")


def resolve_env(value):
    """Expand ``${env.NAME}`` and ``${env.NAME:-default}`` references."""
    if not isinstance(value, str) or "${env." not in value:
        return value

    def _replace(match: re.Match) -> str:
        name, _, default = match.group(1).partition(":-")
        return os.getenv(name, default)

    return _ENV_PATTERN.sub(_replace, value)


class LLMClient:
    """Wrapper for the hosted text model used by the idea validator.

    Provider settings come from a YAML file (``IDEA_VALIDATOR_CONFIG``); when
    the file does not exist the Gemini defaults are used.
    """

    def __init__(
        self,
        config_path: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize LLM client.

        Args:
            config_path: Path to the provider YAML configuration
                        (defaults to IDEA_VALIDATOR_CONFIG env var)
            http_client: Preconfigured HTTP client (tests inject a mock transport)
        """
        self.config_path = config_path or os.getenv(
            "IDEA_VALIDATOR_CONFIG", "./idea-validator.yaml"
        )
        self._load_config()
        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(60.0),
        )

    def _load_config(self) -> None:
        """Load provider configuration."""
        provider = dict(DEFAULT_PROVIDER)

        if os.path.exists(self.config_path):
            with open(self.config_path) as f:
                config = yaml.safe_load(f) or {}

            inference_providers = (config.get("providers") or {}).get("inference") or []
            if not inference_providers:
                raise ValueError(f"No inference providers configured in {self.config_path}")

            # Use first inference provider
            provider.update(inference_providers[0])

        self.provider_type = provider.get("type", "gemini")
        self.base_url = resolve_env(provider.get("base_url"))
        self.api_key = resolve_env(provider.get("api_key")) or None
        self.model = resolve_env(provider.get("model"))

        # Model parameters
        self.temperature = float(provider.get("temperature", 0.7))
        self.max_tokens = int(provider.get("max_tokens", 2048))

    @property
    def is_configured(self) -> bool:
        """An API key is available."""
        return bool(self.api_key)

    async def chat(
        self,
        messages: list[dict],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Run a chat completion.

        Args:
            messages: OpenAI-format messages (system prompt first)
            temperature: Sampling temperature (optional, uses config default)
            max_tokens: Max tokens to generate (optional, uses config default)

        Returns:
            Content of the first choice

        Raises:
            UpstreamServiceError: On HTTP failure or an empty completion
        """
        request_data = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

        try:
            response = await self.http_client.post(
                "/chat/completions",
                json=request_data,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.error("llm_request_failed", error=str(exc))
            raise UpstreamServiceError(f"AI service unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "llm_request_rejected",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise UpstreamServiceError(
                ErrorTranslator.translate_model_error(response.status_code, response.text),
                upstream_status=response.status_code,
            )

        result = response.json()
        choices = result.get("choices") or []
        if not choices:
            logger.error("llm_empty_response", response=result)
            raise UpstreamServiceError("No response from AI")

        return choices[0]["message"]["content"]

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()
