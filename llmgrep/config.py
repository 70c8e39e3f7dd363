from typing import Annotated, Literal

from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from llmgrep.constants import (
    BINARY_CHECK_BYTES,
    CHUNK_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_IGNORE_PATHS,
    DEFAULT_MODEL,
    DEFAULT_PROVIDER,
    DEFAULT_TOP_K,
    DEFAULT_TOP_N,
    MAX_ATTEMPTS,
    MAX_FILE_SIZE,
    RAW_SAMPLE_CHARS,
    REQUEST_TIMEOUT,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_WAIT,
    SCORING_MAX_TOKENS,
    SCORING_TEMPERATURE,
    TRIAGE_ROUNDS,
)

Provider = Literal["ollama", "openai", "anthropic"]
Aggregation = Literal["max", "mean", "top_k_mean"]


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LLMGREP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Scoring service
    provider: Provider = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    base_url: str | None = None
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    temperature: float = SCORING_TEMPERATURE
    max_tokens: int = SCORING_MAX_TOKENS

    # Per-call policy
    request_timeout: float = REQUEST_TIMEOUT
    max_attempts: int = MAX_ATTEMPTS
    retry_initial_wait: float = RETRY_INITIAL_WAIT
    retry_max_wait: float = RETRY_MAX_WAIT

    # File selection
    max_file_size: int = MAX_FILE_SIZE
    binary_check_bytes: int = BINARY_CHECK_BYTES
    ignore_paths: Annotated[tuple[str, ...], NoDecode] = DEFAULT_IGNORE_PATHS
    follow_symlinks: bool = True

    # Pipeline
    chunk_size: int = CHUNK_SIZE
    top_n: int = DEFAULT_TOP_N
    triage_rounds: int = TRIAGE_ROUNDS
    concurrency: int = DEFAULT_CONCURRENCY
    aggregation: Aggregation = "max"
    aggregation_top_k: int = DEFAULT_TOP_K
    raw_sample_chars: int = RAW_SAMPLE_CHARS

    @field_validator("ignore_paths", mode="before")
    @classmethod
    def _split_ignore_paths(cls, v):
        if isinstance(v, str):
            return tuple(p.strip() for p in v.split(",") if p.strip())
        return v

    @field_validator("chunk_size", "top_n", "max_file_size", "binary_check_bytes", "aggregation_top_k")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be positive, got {v}")
        return v

    @field_validator("concurrency")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if not 1 <= v <= 64:
            raise ValueError(f"concurrency must be 1-64, got {v}")
        return v

    @field_validator("max_attempts", "triage_rounds")
    @classmethod
    def _validate_attempts(cls, v: int, info: ValidationInfo) -> int:
        if not 1 <= v <= 10:
            raise ValueError(f"{info.field_name} must be 1-10, got {v}")
        return v

    @field_validator("request_timeout")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"request_timeout must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def _check_api_key(self) -> "Config":
        if self.provider == "anthropic" and not self.anthropic_api_key:
            raise ValueError("provider 'anthropic' requires ANTHROPIC_API_KEY")
        return self
