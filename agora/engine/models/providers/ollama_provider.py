import logging
from typing import TYPE_CHECKING

import httpx
from openai import OpenAI

from .base_model_provider import BaseModelProvider

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion
    from agora.engine.config.settings import ModelConfig, SystemConfig

logger = logging.getLogger(__name__)


class OllamaProvider(BaseModelProvider):
    """Ollama model provider implementation."""

    def __init__(self, system_config: "SystemConfig", client: OpenAI | None = None):
        super().__init__(system_config)
        self._client = client or OpenAI(
            base_url=f"{system_config.ollama_base_url}/v1",
            api_key="ollama",  # Ollama doesn't require real API key
            timeout=120.0,  # Allow for model loading on first request
        )
        self._ollama_base_url = system_config.ollama_base_url

    @property
    def provider_name(self) -> str:
        return "ollama"

    async def is_available(self) -> bool:
        """Fast health check to see if Ollama server is running."""
        try:
            async with httpx.AsyncClient(timeout=1.0) as client:
                response = await client.get(f"{self._ollama_base_url}/api/tags")
                response.raise_for_status()
                return True
        except Exception as e:
            logger.debug(f"Ollama health check failed: {e}")
            return False

    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides
    ) -> str:
        """Generate a response using Ollama."""
        if not self._client:
            raise RuntimeError("Ollama client not initialized")

        params = {
            "model": model_config.name,
            "messages": messages,
            "max_tokens": overrides.get("max_tokens", model_config.max_tokens),
            "temperature": overrides.get("temperature", model_config.temperature),
        }

        ollama_config = self.system_config.ollama
        extra_body = {}
        if ollama_config.keep_alive is not None:
            extra_body["keep_alive"] = ollama_config.keep_alive
        if ollama_config.repeat_penalty is not None:
            extra_body["repeat_penalty"] = ollama_config.repeat_penalty
        if ollama_config.num_thread is not None:
            extra_body["num_thread"] = ollama_config.num_thread

        if extra_body:
            params["extra_body"] = extra_body

        try:
            response: "ChatCompletion" = self._client.chat.completions.create(**params)
            content = response.choices[0].message.content or ""

            logger.debug(
                f"Generated {len(content)} chars from Ollama model {model_config.name}"
            )
            return content.strip()

        except Exception as e:
            logger.error(f"Ollama generation failed for {model_config.name}: {e}")
            raise
