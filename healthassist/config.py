"""
Configuration management with environment variable support and validation.

Values come from the process environment, with a local .env file honoured.
Everything has a safe default so the service starts without any setup.
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production"]


class AssistantConfig(BaseModel):
    """Behaviour of the conversation orchestrator."""

    response_delay_seconds: float = Field(
        default=1.0, ge=0.0, description="Simulated latency before each assistant reply"
    )
    greet_new_sessions: bool = Field(
        default=True, description="Open every new conversation with a welcome message"
    )


class APIConfig(BaseModel):
    """API server configuration."""

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8000, gt=0, lt=65536, description="API server port")
    reload: bool = Field(default=False, description="Enable auto-reload for development")
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed origins for CORS"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Environment = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _env_to_literal(val: str) -> Environment:
    v = val.strip().lower()
    if v in {"dev", "development"}:
        return "development"
    if v in {"stage", "staging"}:
        return "staging"
    return "production"


def _level_to_literal(val: str) -> LogLevel:
    v = val.strip().upper()
    return cast(LogLevel, v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO")


def _parse_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    assistant_config = AssistantConfig(
        response_delay_seconds=float(os.getenv("RESPONSE_DELAY_SECONDS", "1.0")),
        greet_new_sessions=_parse_bool(os.getenv("GREET_NEW_SESSIONS"), True),
    )

    api_config = APIConfig(
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=_parse_bool(os.getenv("API_RELOAD"), debug),
        allowed_origins=[o.strip() for o in os.getenv("API_ALLOWED_ORIGINS", "*").split(",") if o.strip()],
    )

    default_format = "console" if debug else "json"
    log_format = os.getenv("LOG_FORMAT", default_format).strip().lower()
    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if log_format == "console" else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        assistant=assistant_config,
        api=api_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
