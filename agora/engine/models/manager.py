"""Model manager with multi-provider support."""

from __future__ import annotations

import logging
from typing import TypeAlias

from agora.engine.config.settings import ModelConfig, SystemConfig

from .providers.base_model_provider import BaseModelProvider
from .providers.providers import ProviderFactory

MessageDict: TypeAlias = dict[str, str]
MessageList: TypeAlias = list[MessageDict]

logger = logging.getLogger(__name__)


class ModelManager:
    """Manages model inference via multiple providers."""

    def __init__(self, system_config: SystemConfig):
        self._system_config = system_config
        self._model_configs: dict[str, ModelConfig] = {}
        self._providers: dict[str, BaseModelProvider] = {}

    def _get_provider(self, provider_name: str) -> BaseModelProvider:
        """Return (and cache) the provider instance identified by name."""
        if provider_name not in self._providers:
            self._providers[provider_name] = ProviderFactory.create_provider(
                provider_name, self._system_config
            )
        return self._providers[provider_name]

    def register_model(self, model_id: str, config: ModelConfig) -> None:
        """Register a model configuration for quick lookup."""
        try:
            provider = self._get_provider(config.provider)
            if not provider.validate_model_config(config):
                msg = f"Invalid model config for provider {config.provider}"
                raise ValueError(msg)
        except ValueError as exc:
            logger.error("Failed to register model %s: %s", model_id, exc)
            raise

        self._model_configs[model_id] = config
        logger.info("Registered model %s: %s (%s)", model_id, config.name, config.provider)

    def register_provider(self, provider: BaseModelProvider) -> None:
        """Use a pre-built provider instance instead of the factory's."""
        self._providers[provider.provider_name] = provider

    def get_model_config(self, model_id: str) -> ModelConfig:
        if model_id not in self._model_configs:
            raise ValueError(f"Model {model_id} not registered")
        return self._model_configs[model_id]

    async def generate_response(
        self, model_id: str, messages: MessageList, **overrides: object
    ) -> str:
        """Generate a response from the specified model."""
        config = self.get_model_config(model_id)
        provider = self._get_provider(config.provider)

        response = await provider.generate_response(config, messages, **overrides)
        logger.debug(
            "Generated %s chars from %s (%s)", len(response), model_id, config.provider
        )
        return response
