"""Configuration settings and data models."""

import json
import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


VALID_PROVIDERS = {"ollama", "openrouter", "anthropic"}


class ModelConfig(BaseModel):
    """Configuration for a text generation model."""

    name: str = Field(..., description="Model name (e.g., 'llama3.1:8b' for Ollama, 'anthropic/claude-3-haiku' for OpenRouter)")
    provider: str = Field(default="ollama", description="Model provider (ollama, openrouter, anthropic)")
    max_tokens: int = Field(default=512, description="Default maximum tokens per response")
    temperature: float = Field(default=0.7, description="Default model temperature")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v):
        if v not in VALID_PROVIDERS:
            raise ValueError(f"Provider must be one of: {VALID_PROVIDERS}")
        return v


class OllamaConfig(BaseModel):
    """Ollama-specific configuration."""

    keep_alive: Optional[str] = Field(
        default="5m", description="How long to keep models loaded (e.g., '5m', '1h', '0' for immediate unload)"
    )
    repeat_penalty: Optional[float] = Field(
        default=1.1, description="Penalty for repetition in responses"
    )
    num_thread: Optional[int] = Field(
        default=None, description="Number of CPU threads for processing"
    )


class OpenRouterConfig(BaseModel):
    """OpenRouter-specific configuration."""

    api_key: Optional[str] = Field(
        default=None, description="OpenRouter API key (can also be set via OPENROUTER_API_KEY env var)"
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1", description="OpenRouter API base URL"
    )
    site_url: Optional[str] = Field(
        default=None, description="Your site URL for OpenRouter referrer tracking"
    )
    app_name: Optional[str] = Field(
        default="Agora Debate Engine", description="App name for OpenRouter tracking"
    )
    max_retries: int = Field(default=3, description="Maximum number of API call retries")
    timeout: int = Field(default=60, description="API request timeout in seconds")


class AnthropicConfig(BaseModel):
    """Anthropic-specific configuration (OpenAI SDK compatibility endpoint)."""

    api_key: Optional[str] = Field(
        default=None, description="Anthropic API key (can also be set via ANTHROPIC_API_KEY env var)"
    )
    base_url: str = Field(
        default="https://api.anthropic.com/v1/", description="Anthropic OpenAI-compatible base URL"
    )
    max_retries: int = Field(default=3, description="Maximum number of API call retries")
    timeout: int = Field(default=60, description="API request timeout in seconds")


class DebateRulesConfig(BaseModel):
    """Rules governing a two-party debate."""

    max_rounds: int = Field(default=2, description="Rebuttal rounds per debate")
    response_timeout_seconds: int = Field(
        default=300, description="Seconds of inactivity before the current speaker forfeits"
    )
    min_argument_length: int = Field(
        default=100, description="Minimum characters for an acceptable argument"
    )
    max_argument_chars: int = Field(
        default=1000, description="Arguments are truncated to this many characters"
    )
    argument_attempts: int = Field(
        default=3, description="Generation attempts before a turn fails"
    )
    similarity_threshold: float = Field(
        default=0.5, description="Word overlap above which an argument is rejected as repetitive"
    )
    default_stake: int = Field(
        default=10**17, description="Default stake per side, in the ledger's smallest unit"
    )
    delegation_probability: float = Field(
        default=0.3, description="Chance that strategy choice is delegated to the model"
    )

    @field_validator("delegation_probability", "similarity_threshold")
    @classmethod
    def validate_probability(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError("Value must be between 0.0 and 1.0")
        return v


class ConvictionConfig(BaseModel):
    """Conviction scoring configuration."""

    min_delta: int = Field(default=-30, description="Most negative delta a single evaluation may apply")
    max_delta: int = Field(default=5, description="Most positive delta a single evaluation may apply")
    sermon_multiplier: float = Field(
        default=0.5, description="Scaling applied to deltas from sermons"
    )
    conversion_threshold: int = Field(
        default=30, description="Default conviction below which an agent converts"
    )
    post_conversion_conviction: int = Field(
        default=40, description="Default conviction right after a conversion"
    )
    evaluation_attempts: int = Field(default=3, description="Evaluation attempts before giving up")
    evaluation_backoff_seconds: float = Field(
        default=1.0, description="Backoff per attempt between evaluation retries"
    )
    evaluation_temperature: float = Field(default=0.7, description="Evaluation model temperature")
    evaluation_max_tokens: int = Field(default=512, description="Evaluation response token limit")

    @model_validator(mode="after")
    def validate_delta_range(self):
        if self.min_delta > self.max_delta:
            raise ValueError("min_delta must not exceed max_delta")
        return self


class CooldownConfig(BaseModel):
    """Per-action cooldowns in seconds."""

    preach: int = Field(default=600, description="Seconds between sermons")
    challenge: int = Field(default=1800, description="Seconds between challenges")
    debate_turn: int = Field(default=0, description="Seconds between debate turns")


class AgentConfig(BaseModel):
    """A philosopher agent taking part in the arena."""

    agent_id: int = Field(..., description="Ledger identity of the agent")
    name: str = Field(..., description="Display name")
    belief_id: int = Field(..., description="Canonical belief system id (1-4)")
    persona: str = Field(default="", description="Personality and philosophy text")
    seed_conviction: int = Field(default=85, description="Conviction at onboarding")
    conversion_threshold: Optional[int] = Field(
        default=None, description="Per-agent conversion threshold (defaults to conviction.conversion_threshold)"
    )
    post_conversion_conviction: Optional[int] = Field(
        default=None, description="Per-agent post-conversion conviction"
    )
    model: str = Field(default="default", description="Key into AppConfig.models")

    @field_validator("belief_id")
    @classmethod
    def validate_belief_id(cls, v):
        if v not in {1, 2, 3, 4}:
            raise ValueError("belief_id must be one of 1 (Nihilism), 2 (Existentialism), 3 (Absurdism), 4 (Stoicism)")
        return v

    @field_validator("seed_conviction")
    @classmethod
    def validate_seed_conviction(cls, v):
        if not 0 <= v <= 100:
            raise ValueError("seed_conviction must be between 0 and 100")
        return v


class SystemConfig(BaseModel):
    """System-wide configuration."""

    ollama_base_url: str = Field(
        default="http://localhost:11434", description="Ollama API URL"
    )
    ollama: OllamaConfig = Field(
        default_factory=OllamaConfig, description="Ollama-specific settings"
    )
    openrouter: OpenRouterConfig = Field(
        default_factory=OpenRouterConfig, description="OpenRouter-specific settings"
    )
    anthropic: AnthropicConfig = Field(
        default_factory=AnthropicConfig, description="Anthropic-specific settings"
    )

    workspace_dir: str = Field(
        default="workspace", description="Directory holding belief and debate documents"
    )
    arena_channel: str = Field(
        default="agora", description="Channel where challenges, turns and verdicts are posted"
    )
    loop_interval_seconds: float = Field(
        default=60.0, description="Seconds between decision cycles"
    )
    judge_model: str = Field(
        default="default", description="Key into AppConfig.models used by the Chronicler"
    )
    ledger_belief_ids: Dict[int, int] = Field(
        default_factory=dict,
        description="Deployment-specific ledger ids keyed by canonical belief id",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class AppConfig(BaseModel):
    """Complete application configuration."""

    models: Dict[str, ModelConfig]
    agents: List[AgentConfig] = Field(default_factory=list)
    debate: DebateRulesConfig = Field(default_factory=DebateRulesConfig)
    conviction: ConvictionConfig = Field(default_factory=ConvictionConfig)
    cooldowns: CooldownConfig = Field(default_factory=CooldownConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not data.get("models"):
            raise ValueError(
                "Config must include at least one model in 'models' section"
            )

        config = cls(**data)
        config.apply_env_overrides()
        return config

    def apply_env_overrides(self) -> None:
        """Apply AGORA_* environment variables on top of file settings."""
        log_level = os.getenv("AGORA_LOG_LEVEL")
        if log_level:
            self.system.log_level = log_level.upper()
        workspace = os.getenv("AGORA_WORKSPACE")
        if workspace:
            self.system.workspace_dir = workspace
        ollama_url = os.getenv("OLLAMA_URL")
        if ollama_url:
            self.system.ollama_base_url = ollama_url

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )

    def get_agent(self, name: str) -> AgentConfig:
        """Return the agent configuration with the given name."""
        for agent in self.agents:
            if agent.name.lower() == name.lower():
                return agent
        raise ValueError(f"Agent {name} not configured")


def get_default_config() -> AppConfig:
    """Load default configuration from agora_config.json, creating it if needed."""
    config_path = Path("agora_config.json")
    if not config_path.exists():
        template_config = get_template_config()
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(template_config.model_dump(exclude_unset=True), f, indent=2)
    return AppConfig.load_from_file(config_path)


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        models={
            "default": ModelConfig(
                name="llama3.1:8b",
                provider="ollama",
                max_tokens=512,
                temperature=0.7,
            ),
        },
        agents=[
            AgentConfig(
                agent_id=1,
                name="Seneca",
                belief_id=4,
                persona="# Seneca\n\n## Core Tenets\nVirtue is the only good. Control what you can, accept what you cannot.",
                seed_conviction=85,
            ),
            AgentConfig(
                agent_id=2,
                name="Kael",
                belief_id=2,
                persona="# Kael\n\n## Core Tenets\nExistence precedes essence. We are condemned to be free.",
                seed_conviction=85,
                conversion_threshold=35,
            ),
        ],
        debate=DebateRulesConfig(),
        conviction=ConvictionConfig(),
        cooldowns=CooldownConfig(),
        system=SystemConfig(
            ollama_base_url="http://localhost:11434",
            ollama=OllamaConfig(keep_alive="5m", repeat_penalty=1.1),
            openrouter=OpenRouterConfig(
                api_key=None,  # Set your OpenRouter API key here or use OPENROUTER_API_KEY env var
                base_url="https://openrouter.ai/api/v1",
                app_name="Agora Debate Engine",
                max_retries=3,
                timeout=60,
            ),
            workspace_dir="workspace",
            arena_channel="agora",
            loop_interval_seconds=60.0,
            log_level="INFO",
        ),
    )
