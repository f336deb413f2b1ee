"""Centralized configuration for ti-search using Pydantic Settings."""

import codecs
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(ValueError):
    """Raised when user-supplied paths or options are unusable."""


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``TI_``-prefixed environment variables.

    Everything has a default, so ``Settings()`` works without any environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="TI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Index layout
    cache_bucket_count: int = Field(
        default=20, ge=1, description="Number of cache bucket directories (docID mod bucket count)"
    )

    # Text processing
    processor: Literal["simple", "html"] = Field(default="simple", description="Text processor used for docs and queries")
    min_term_length: int = Field(default=5, ge=1, description="Shortest token kept as an index term")
    document_suffix: str = Field(default=".html", description="File suffix identifying documents in the collection")
    document_encoding: str = Field(default="utf-8", description="Encoding used to decode document bytes")

    # Retrieval
    retrieval_model: Literal["cosine"] = Field(default="cosine", description="Scoring model for queries")
    batch_page_size: int = Field(default=500, ge=1, description="Results printed per topic in batch mode")
    interactive_page_size: int = Field(default=10, ge=1, description="Results shown per page in interactive mode")
    snippet_length: int = Field(default=300, ge=20, description="Snippet window length in characters")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    @field_validator("document_suffix")
    @classmethod
    def _check_suffix(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("document_suffix must look like '.html'")
        return value

    @field_validator("document_encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown document_encoding '{value}'") from exc
        return value


def validate_index_target(path: Path) -> Path:
    """Index output may not exist yet, but must not be a regular file."""
    if path.exists() and not path.is_dir():
        raise ConfigurationError("The index path must be a directory.")
    return path


def validate_existing_index(path: Path) -> Path:
    if not path.is_dir():
        raise ConfigurationError("Index directory does not exist.")
    return path


def validate_collection(path: Path) -> Path:
    if not path.is_dir():
        raise ConfigurationError("Invalid path to document collection.")
    return path


def validate_file(path: Path, *, label: str) -> Path:
    if not path.is_file():
        raise ConfigurationError(f"Invalid path to {label}.")
    return path
