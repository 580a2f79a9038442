from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, ClassVar, cast

from httpx import HTTPStatusError
from openai import OpenAI, RateLimitError

from .base_model_provider import BaseModelProvider
from .exceptions import ProviderRateLimitError

if TYPE_CHECKING:
    from agora.engine.config.settings import ModelConfig, SystemConfig

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseModelProvider):
    """Anthropic model provider using OpenAI SDK compatibility."""

    _last_request_time: ClassVar[float | None] = None
    _min_request_interval: ClassVar[float] = 3.0

    def __init__(self, system_config: SystemConfig, client: OpenAI | None = None):
        super().__init__(system_config)

        api_key = self._get_api_key()

        if client is not None:
            self._client = client
        elif not api_key:
            logger.warning(
                "No Anthropic API key found. Set ANTHROPIC_API_KEY or configure in"
                " system settings."
            )
            self._client = None
        else:
            self._client = OpenAI(
                base_url=system_config.anthropic.base_url,
                api_key=api_key,
                timeout=system_config.anthropic.timeout,
                max_retries=system_config.anthropic.max_retries,
            )

    def _get_api_key(self) -> str | None:
        """Get Anthropic API key from environment or config."""
        return os.getenv("ANTHROPIC_API_KEY") or self.system_config.anthropic.api_key

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def _rate_limit_request(self) -> None:
        """Ensure minimum time between requests to avoid 429 errors."""
        current_time = time.time()

        if self._last_request_time is not None:
            time_since_last = current_time - self._last_request_time
            if time_since_last < self._min_request_interval:
                sleep_time = self._min_request_interval - time_since_last
                logger.debug(
                    f"Rate limiting: waiting {sleep_time:.2f}s before next"
                    " Anthropic request"
                )
                await asyncio.sleep(sleep_time)

        AnthropicProvider._last_request_time = time.time()

    @staticmethod
    def _coerce_content_to_text(content: object) -> str:
        """Return textual content from OpenAI-style message content payloads."""
        if isinstance(content, str):
            return content

        if isinstance(content, Sequence):
            parts: list[str] = []
            for element in cast(Sequence[object], content):
                if isinstance(element, str):
                    parts.append(element)
                elif isinstance(element, Mapping):
                    text_value = cast(Mapping[str, object], element).get("text")
                    if isinstance(text_value, str):
                        parts.append(text_value)
            return "".join(parts)

        return ""

    async def generate_response(
        self, model_config: ModelConfig, messages: list[dict[str, str]], **overrides
    ) -> str:
        """Generate a response using Anthropic via OpenAI SDK."""
        if not self._client:
            raise RuntimeError("Anthropic client not initialized - check API key")

        max_tokens = overrides.get("max_tokens", model_config.max_tokens)
        temperature = overrides.get("temperature", model_config.temperature)

        try:
            await self._rate_limit_request()

            response = self._client.chat.completions.create(
                model=model_config.name,
                messages=messages,  # type: ignore
                max_tokens=max_tokens,
                temperature=temperature,
            )

            content = ""
            if response.choices:
                message = response.choices[0].message
                if message.content:
                    content = self._coerce_content_to_text(message.content)

            if not content.strip():
                logger.warning(
                    "Anthropic model %s returned empty content", model_config.name
                )
            else:
                logger.debug(
                    "Generated %s chars from Anthropic model %s",
                    len(content),
                    model_config.name,
                )

            return content.strip()

        except (RateLimitError, HTTPStatusError) as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            if isinstance(exc, RateLimitError) or status == 429:
                raise ProviderRateLimitError(
                    provider="anthropic",
                    model=model_config.name,
                    status_code=429,
                    detail="Anthropic rate limited the request.",
                ) from exc
            logger.error(
                "Anthropic generation failed for %s: %s", model_config.name, exc
            )
            raise
