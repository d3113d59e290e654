"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Every field can be overridden by the upper-cased environment variable
    of the same name, or through a ``.env`` file.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./catalogwiki.db",
        description="Database connection URL"
    )

    # Repository storage
    # Uploaded archives are extracted to {repository_base_dir}/{user}/{project}.
    repository_base_dir: str = Field(
        default="./repository",
        description="Base directory for extracted repositories"
    )
    ignore_file_name: str = Field(
        default=".gitignore",
        description="Ignore file read from the repository root when rendering the file tree"
    )

    # Detail generation
    # Upper bound on concurrent per-node generation units.
    detail_max_workers: int = Field(
        default=4,
        description="Worker threads dedicated to catalogue detail generation"
    )

    # Model Configuration
    # LiteLLM model string, e.g. "openai/gpt-4o-mini", "openrouter/mistralai/devstral-2512".
    llm_model: str = Field(
        default="",
        description="LiteLLM model string for outline and detail generation"
    )
    llm_api_key: str = Field(
        default="",
        description="API key for the model provider"
    )
    llm_api_base: str = Field(
        default="",
        description="Base URL for the model provider (optional)"
    )
    llm_timeout: int = Field(
        default=600,
        description="Seconds before a single model call is abandoned"
    )
    llm_max_tokens: int = Field(
        default=8192,
        description="Maximum completion tokens per model call"
    )
    chat_max_history_messages: int = Field(
        default=20,
        description="Messages kept per conversation for the chat variant"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('detail_max_workers')
    @classmethod
    def validate_detail_max_workers(cls, v: int) -> int:
        """The generation pool needs at least one worker."""
        if v < 1:
            raise ValueError("detail_max_workers must be at least 1")
        return v

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
