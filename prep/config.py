"""Configuration management using pydantic-settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from prep.context import ContextConfiguration, ContextIndexer, RelevanceWeights


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Vault
    vault_path: Path

    # Retrieval
    max_results: int = Field(default=10, ge=1)
    min_relevance_score: float = Field(default=0.15, ge=0.0)
    include_snippets: bool = True
    snippet_length: int = Field(default=200, ge=20)
    max_snippets: int = Field(default=3, ge=0)
    recency_half_life_days: float = Field(default=30.0, gt=0.0)

    # Scan limits for large vaults
    max_files: int = Field(default=5000, ge=1)
    max_file_bytes: int = Field(default=1_000_000, ge=1)

    @field_validator("vault_path")
    @classmethod
    def validate_vault_path(cls, v: Path) -> Path:
        """Ensure vault path exists and is a directory."""
        if not v.exists():
            raise ValueError(f"Vault path does not exist: {v}")
        if not v.is_dir():
            raise ValueError(f"Vault path is not a directory: {v}")
        return v.resolve()

    def context_configuration(self) -> ContextConfiguration:
        """Retrieval options for the meeting context service."""
        return ContextConfiguration(
            max_results=self.max_results,
            min_relevance_score=self.min_relevance_score,
            include_snippets=self.include_snippets,
            snippet_length=self.snippet_length,
        )

    def create_indexer(self, weights: RelevanceWeights | None = None) -> ContextIndexer:
        """A context indexer configured from these settings."""
        return ContextIndexer(
            weights=weights or RelevanceWeights(),
            min_relevance_score=self.min_relevance_score,
            max_results=self.max_results,
            max_snippets=self.max_snippets,
            snippet_length=self.snippet_length,
            half_life_days=self.recency_half_life_days,
            max_files=self.max_files,
            max_file_bytes=self.max_file_bytes,
        )


def get_settings() -> Settings:
    """Load settings from environment."""
    return Settings()
