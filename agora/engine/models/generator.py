"""Single text generation capability consumed by the engine."""

from typing import Protocol

from .manager import ModelManager


class TextGenerator(Protocol):
    """Anything that turns a prompt into text."""

    async def generate(
        self, prompt: str, *, max_tokens: int = 512, temperature: float = 0.7
    ) -> str:
        ...


class ModelTextGenerator:
    """Generates text through a model registered with a ModelManager.

    The backend (ollama, openrouter, anthropic) is whatever provider the
    registered ModelConfig names; callers only see ``generate``.
    """

    def __init__(self, model_manager: ModelManager, model_id: str, system_prompt: str | None = None):
        self.model_manager = model_manager
        self.model_id = model_id
        self.system_prompt = system_prompt

    async def generate(
        self, prompt: str, *, max_tokens: int = 512, temperature: float = 0.7
    ) -> str:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await self.model_manager.generate_response(
            self.model_id, messages, max_tokens=max_tokens, temperature=temperature
        )
