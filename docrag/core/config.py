"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


class LLMConfig(BaseSettings):
    """Text-generation provider configuration."""

    provider: str = "gemini"
    model: str = "gemini-2.0-flash"
    temperature: float = 0.3
    max_tokens: int = 4096
    timeout_seconds: float = 60.0
    base_url: str | None = None

    # API keys (used based on provider)
    google_api_key: str | None = None
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None

    model_config = SettingsConfigDict(env_prefix="LLM_")


# Provider -> (model, dimensions) used when EMBEDDING_MODEL is unset
EMBEDDING_DEFAULTS: dict[str, tuple[str, int]] = {
    "gemini": ("models/text-embedding-004", 768),
    "openai": ("text-embedding-3-small", 1536),
    "pinecone": ("multilingual-e5-large", 1024),
}


class EmbeddingConfig(BaseSettings):
    """Embedding provider configuration.

    The same provider and model must be used for ingestion and for queries;
    ``dimensions`` is checked against every vector the provider returns.
    """

    provider: str = "gemini"  # 'gemini', 'openai' or 'pinecone'
    model: str | None = None
    dimensions: int | None = None
    batch_size: int = 100
    max_concurrency: int = 4
    max_retries: int = 3
    retry_delay: float = 1.0

    google_api_key: str | None = None
    openai_api_key: str | None = None
    pinecone_api_key: str | None = None

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    @model_validator(mode="after")
    def _apply_provider_defaults(self) -> "EmbeddingConfig":
        """Fill an unset model or dimension count from the provider's default."""
        defaults = EMBEDDING_DEFAULTS.get(self.provider)
        if defaults is None:
            return self
        if self.model is None:
            self.model = defaults[0]
            if self.dimensions is None:
                self.dimensions = defaults[1]
        elif self.dimensions is None and self.model == defaults[0]:
            self.dimensions = defaults[1]
        return self


class RAGConfig(BaseSettings):
    """RAG pipeline configuration."""

    chunk_size: int = 1000
    chunk_overlap: int = 200
    chunk_insert_batch_size: int = 50
    query_match_count: int = 8
    search_match_count: int = 10
    similarity_threshold: float = 0.4
    snippet_length: int = 200
    title_length: int = 100
    history_messages: int = 6

    model_config = SettingsConfigDict(env_prefix="RAG_")


class StoreConfig(BaseSettings):
    """Document store backend selection."""

    backend: str = "in_memory"  # 'in_memory' or 'supabase'

    model_config = SettingsConfigDict(env_prefix="STORE_")


class SupabaseConfig(BaseSettings):
    """Supabase database and authentication configuration."""

    url: str | None = None
    service_key: str | None = None
    auth_timeout_seconds: float = 10.0
    auth_cache_seconds: int = 60  # 0 disables the verified-token cache

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    app_name: str = "DocRAG"
    debug: bool = False
    log_level: str = "INFO"
    log_to_file: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list = Field(default_factory=lambda: ["*"])
    max_upload_mb: int = 20
    max_files_per_request: int = 10

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    rag: RAGConfig = Field(default_factory=RAGConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)

    model_config = SettingsConfigDict(env_file=str(_env_file), env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()
