"""Configuration module."""

from pdf_rag.config.configuration import (
    ApiConfig,
    AppConfig,
    ChunkingConfig,
    ConfigurationError,
    CosmosDBConfig,
    DocumentIntelligenceConfig,
    ExtractionConfig,
    IngestionConfig,
    LoggingConfig,
    OpenAIConfig,
    QueryConfig,
    ServerConfig,
    StorageConfig,
    get_config,
    load_config,
    reset_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "ChunkingConfig",
    "ConfigurationError",
    "CosmosDBConfig",
    "DocumentIntelligenceConfig",
    "ExtractionConfig",
    "IngestionConfig",
    "LoggingConfig",
    "OpenAIConfig",
    "QueryConfig",
    "ServerConfig",
    "StorageConfig",
    "get_config",
    "load_config",
    "reset_config",
]
