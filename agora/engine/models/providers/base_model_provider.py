from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from openai import OpenAI

if TYPE_CHECKING:
    from agora.engine.config.settings import ModelConfig, SystemConfig


class BaseModelProvider(ABC):
    """Abstract base class for model providers."""

    def __init__(self, system_config: "SystemConfig"):
        self.system_config = system_config
        self._client: OpenAI | None = None

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        pass

    @abstractmethod
    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides
    ) -> str:
        """Generate a response using this provider."""
        pass

    def validate_model_config(self, model_config: "ModelConfig") -> bool:
        """Validate that a model configuration is compatible with this provider."""
        return model_config.provider == self.provider_name

    async def is_available(self) -> bool:
        """Whether the provider can currently serve requests."""
        return self._client is not None
