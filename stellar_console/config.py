"""
Configuration management for the Stellar Skies Console.

Loads all configuration from environment variables with sensible defaults
for local development. An optional YAML file (``CONSOLE_CONFIG_PATH``)
overrides individual values; see ``config_loader``.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class OrchestratorConfig:
    """Configuration for the turn orchestrator.

    ``max_steps`` and ``timeout_seconds`` are the only tunable parameters
    of the reasoning loop itself.
    """
    max_steps: int = int(os.getenv("MAX_REASONING_STEPS", "7"))
    timeout_seconds: float = float(os.getenv("RESPONSE_TIMEOUT_SECONDS", "30"))
    # "keyword" runs offline; "llm" talks to an OpenAI-compatible endpoint
    planner: str = os.getenv("CONSOLE_PLANNER", "keyword")


@dataclass
class LLMConfig:
    """Configuration for the language model behind ``LLMPlanner``."""
    base_url: str = os.getenv(
        "LLM_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
    )
    model: str = os.getenv("LLM_MODEL", "gemini-2.0-flash")
    api_key: str = os.getenv("LLM_API_KEY", "")
    temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    port: int = int(os.getenv("SERVER_PORT", "8000"))
    reload: bool = os.getenv("SERVER_RELOAD", "false").lower() == "true"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = os.getenv("LANGFUSE_DEBUG", "false").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    orchestrator: OrchestratorConfig
    llm: LLMConfig
    server: ServerConfig
    langfuse: LangfuseConfig
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration.

    Environment defaults are applied first, then the YAML file named by
    ``CONSOLE_CONFIG_PATH`` when it is set.
    """
    from .config_loader import apply_yaml_overrides

    base = Config(
        orchestrator=OrchestratorConfig(),
        llm=LLMConfig(),
        server=ServerConfig(),
        langfuse=LangfuseConfig(),
    )
    path = os.getenv("CONSOLE_CONFIG_PATH", "")
    if path:
        apply_yaml_overrides(base, path)
    return base


# Global config instance
config = get_config()
