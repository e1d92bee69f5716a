"""Configuration management for QIA."""

import os
import shlex
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


AGENT_ENV_PREFIX: Dict[str, str] = {
    "rca_agent": "QIA_RCA_AGENT",
    "healer_agent": "QIA_HEALER_AGENT",
}


class AgentModelConfig(BaseModel):
    """Per-agent model configuration."""

    model: str
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, ge=16)


DEFAULT_AGENT_MODELS: Dict[str, AgentModelConfig] = {
    "rca_agent": AgentModelConfig(model="gpt-4o", temperature=0.2, max_tokens=512),
    "healer_agent": AgentModelConfig(model="gpt-4o", temperature=0.0, max_tokens=128),
}


class ExecutionConfig(BaseModel):
    """Settings consumed by the executor, runner and evidence reconciler."""

    project_root: Path = Path(".")
    results_dir: Path = Path("test-results")
    evidence_dir: Path = Path("test-results/evidence")
    screenshots_dir: Path = Path("test-results/screenshots")
    playwright_command: List[str] = Field(
        default_factory=lambda: ["npx", "playwright", "test"]
    )
    playwright_config: str = "playwright.config.ts"
    error_excerpt_chars: int = Field(default=500, ge=1)

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path against the project root."""
        return path if path.is_absolute() else self.project_root / path


class ClassificationConfig(BaseModel):
    """Thresholds for the root-cause rule cascade and RCA prompts."""

    slow_response_ms: float = Field(default=3000, ge=0)
    backend_error_status: int = Field(default=400, ge=100, le=599)
    api_log_limit: int = Field(default=8, ge=1)
    prompt_console_limit: int = Field(default=5, ge=0)
    prompt_network_limit: int = Field(default=10, ge=0)


class HealingConfig(BaseModel):
    """Bounds and preferences for locator healing."""

    max_heal_attempts: int = Field(default=3, ge=0)
    context_lines: int = Field(default=5, ge=0)
    max_expression_length: int = Field(default=200, ge=10)
    locator_prefix: str = "page."
    preferred_locator_strategy: str = "testid"
    test_id_attribute: str = "data-testid"
    heal_passing_artifacts: bool = False


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="Default OpenAI model")
    openai_temperature: float = Field(
        default=0.2, ge=0.0, le=2.0, description="Default temperature"
    )
    openai_max_retries: int = Field(
        default=3, ge=1, description="Maximum API retry attempts"
    )
    openai_request_timeout_seconds: int = Field(
        default=120, ge=5, description="Request timeout for OpenAI API calls in seconds"
    )
    agent_models: Dict[str, AgentModelConfig] = Field(
        default_factory=dict, description="Per-agent OpenAI model configuration"
    )

    # Execution Configuration
    project_root: Path = Field(
        default=Path("."), description="Root of the test project the runner executes in"
    )
    results_dir: Path = Field(
        default=Path("test-results"), description="Runner output directory"
    )
    evidence_dir: Path = Field(
        default=Path("test-results/evidence"), description="Evidence JSON directory"
    )
    screenshots_dir: Path = Field(
        default=Path("test-results/screenshots"), description="Screenshot directory"
    )
    playwright_command: str = Field(
        default="npx playwright test", description="Command that launches the test runner"
    )
    playwright_config: str = Field(
        default="playwright.config.ts", description="Runner config file passed via --config"
    )
    error_excerpt_chars: int = Field(
        default=500, ge=1, description="Characters of error text kept per failure"
    )

    # Classification Configuration
    slow_response_ms: float = Field(
        default=3000, ge=0, description="Response time above which an API call counts as failing"
    )
    backend_error_status: int = Field(
        default=400, ge=100, le=599, description="Lowest HTTP status treated as a backend error"
    )
    api_log_limit: int = Field(
        default=8, ge=1, description="API calls included in the RCA log"
    )
    prompt_console_limit: int = Field(
        default=5, ge=0, description="Console errors included in the RCA prompt"
    )
    prompt_network_limit: int = Field(
        default=10, ge=0, description="Network calls included in the RCA prompt"
    )

    # Healing Configuration
    max_heal_attempts: int = Field(
        default=3,
        ge=0,
        description="Maximum heal-and-rerun cycles per artifact",
        validation_alias=AliasChoices("QIA_MAX_HEAL_ATTEMPTS", "max_heal_attempts"),
    )
    heal_context_lines: int = Field(
        default=5, ge=0, description="Source lines on each side sent with a generative heal"
    )
    heal_max_expression_length: int = Field(
        default=200, ge=10, description="Longest accepted generative locator"
    )
    preferred_locator_strategy: str = Field(
        default="testid", description="Team's preferred locator strategy"
    )
    test_id_attribute: str = Field(
        default="data-testid", description="Attribute used by getByTestId"
    )
    heal_passing_artifacts: bool = Field(
        default=False,
        description="Run a healing pass over artifacts that already pass",
        validation_alias=AliasChoices("QIA_HEAL_PASSING_ARTIFACTS", "heal_passing_artifacts"),
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("playwright_command")
    def validate_playwright_command(cls, v: str) -> str:
        if not shlex.split(v):
            raise ValueError("playwright_command cannot be empty")
        return v

    @model_validator(mode="after")
    def populate_agent_models(self) -> "Settings":
        """Populate agent model configurations from defaults and environment."""
        env = os.environ
        openai_model_env_set = "OPENAI_MODEL" in env

        configured_models: Dict[str, AgentModelConfig] = {}
        existing_models = self.agent_models.copy()

        for agent_name, prefix in AGENT_ENV_PREFIX.items():
            base_config = existing_models.get(agent_name, DEFAULT_AGENT_MODELS[agent_name])
            config_payload = base_config.model_dump()

            model_override = env.get(f"{prefix}_MODEL")
            if model_override:
                config_payload["model"] = model_override
            elif openai_model_env_set:
                config_payload["model"] = self.openai_model

            temperature_override = env.get(f"{prefix}_TEMPERATURE")
            if temperature_override:
                try:
                    config_payload["temperature"] = float(temperature_override)
                except ValueError as exc:
                    raise ValueError(
                        f"Invalid temperature for {agent_name}: {temperature_override}"
                    ) from exc

            configured_models[agent_name] = AgentModelConfig(**config_payload)

        for agent_name, config in existing_models.items():
            if agent_name not in configured_models:
                configured_models[agent_name] = config

        self.agent_models = configured_models
        return self

    def get_agent_model_config(self, agent_name: str) -> AgentModelConfig:
        """Return agent-specific model configuration."""
        if agent_name in self.agent_models:
            return self.agent_models[agent_name]

        return AgentModelConfig(
            model=self.openai_model,
            temperature=self.openai_temperature,
        )

    def execution_config(self) -> ExecutionConfig:
        return ExecutionConfig(
            project_root=self.project_root,
            results_dir=self.results_dir,
            evidence_dir=self.evidence_dir,
            screenshots_dir=self.screenshots_dir,
            playwright_command=shlex.split(self.playwright_command),
            playwright_config=self.playwright_config,
            error_excerpt_chars=self.error_excerpt_chars,
        )

    def classification_config(self) -> ClassificationConfig:
        return ClassificationConfig(
            slow_response_ms=self.slow_response_ms,
            backend_error_status=self.backend_error_status,
            api_log_limit=self.api_log_limit,
            prompt_console_limit=self.prompt_console_limit,
            prompt_network_limit=self.prompt_network_limit,
        )

    def healing_config(self) -> HealingConfig:
        return HealingConfig(
            max_heal_attempts=self.max_heal_attempts,
            context_lines=self.heal_context_lines,
            max_expression_length=self.heal_max_expression_length,
            preferred_locator_strategy=self.preferred_locator_strategy,
            test_id_attribute=self.test_id_attribute,
            heal_passing_artifacts=self.heal_passing_artifacts,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings()
