"""Configuration management for the transfer evaluation service."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Reasoning service
    reasoning_backend: Literal["gemini", "ollama", "none"] = Field(
        default="gemini",
        description="Which reasoning service backs course matching and extraction",
    )
    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(default="gemini-1.5-flash", description="Gemini model name")

    # Ollama
    ollama_host: str = Field(default="http://localhost:11434", description="Ollama API host")
    ollama_model: str = Field(default="llama3.2", description="Default Ollama model")

    inference_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout applied to every reasoning-service call",
    )

    # Reference data
    equivalency_table_path: Path | None = Field(
        default=None,
        description="Equivalency table JSON. Defaults to the bundled Bellevue → UW guide.",
    )

    # Uploads
    max_file_size_mb: int = Field(default=10, description="Maximum transcript upload size in MB")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def inference_configured(self) -> bool:
        """Whether a reasoning service can be used at all."""
        if self.reasoning_backend == "gemini":
            return bool(self.gemini_api_key)
        return self.reasoning_backend == "ollama"

    @property
    def model_label(self) -> str:
        """Backend/model identifier used in logs and health output."""
        if not self.inference_configured:
            return "local"
        if self.reasoning_backend == "gemini":
            return f"gemini/{self.gemini_model}"
        return f"ollama/{self.ollama_model}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
