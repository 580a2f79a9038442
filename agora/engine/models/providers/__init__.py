"""Model providers package."""

from .providers import ProviderFactory
from .ollama_provider import OllamaProvider
from .open_router_provider import OpenRouterProvider
from .anthropic_provider import AnthropicProvider
from .base_model_provider import BaseModelProvider
from .exceptions import ProviderRateLimitError

__all__ = [
    "ProviderFactory",
    "OllamaProvider",
    "OpenRouterProvider",
    "AnthropicProvider",
    "BaseModelProvider",
    "ProviderRateLimitError",
]
