"""
Configuration settings for querycraft.

Values are read from environment variables prefixed with ``QUERYCRAFT_``
and from a ``.env`` file in the working directory.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuerycraftSettings(BaseSettings):
    """Default configuration used by provider adapters and ``from_settings`` constructors."""

    # OpenAI compatible endpoints
    openai_api_key: Optional[str] = Field(default=None, description="API key for OpenAI compatible endpoints")
    openai_base_url: Optional[str] = Field(default=None, description="Base URL for OpenAI compatible endpoints")
    llm_model: str = Field(default="gpt-4o-mini", description="Chat model name")
    embedding_model: str = Field(default="text-embedding-3-small", description="Embedding model name")
    embedding_dimension: int = Field(default=1536, description="Embedding vector size")

    # Chunking
    chunk_size: int = Field(default=1024, description="Chunk size in tokens")
    chunk_overlap: int = Field(default=200, description="Overlap between chunks in tokens")

    # Query
    similarity_top_k: int = Field(default=4, description="Number of results returned by retrievers")
    response_mode: str = Field(default="compact", description="Default response synthesizer mode")

    # Retry
    max_retries: int = Field(default=3, description="Additional attempts made by the retry engine")
    retry_delay: float = Field(default=1.0, description="Delay in seconds between retry attempts")

    # Agent
    agent_max_iterations: int = Field(default=5, description="Iteration cap of the agent loop")

    # Vector store
    qdrant_url: Optional[str] = Field(default=None, description="Qdrant server URL; in-memory when unset")
    collection_name: str = Field(default="querycraft", description="Qdrant collection name")

    log_level: str = Field(default="INFO", description="Log level used by configure_logging")

    model_config = SettingsConfigDict(
        env_prefix="QUERYCRAFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> QuerycraftSettings:
    """Return the process wide settings instance."""
    return QuerycraftSettings()
