"""Configuration module for pdf-rag.

Loads settings from environment-specific config files:
- APP_ENV=dev  → config_dev.yaml
- APP_ENV=test → config_test.yaml
- Default      → config.yaml

Secrets (API keys, database connection string) are loaded from .env file.
Fails fast with clear error messages if required configuration is missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

DEFAULT_PORT = 3000
SUPPORTED_STORAGE_BACKENDS = ("sqlite", "cosmosdb")
SUPPORTED_EXTRACTION_BACKENDS = ("pdfplumber", "document_intelligence")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_project_root() -> Path:
    """Get the project root directory (where config.yaml lives)."""
    # Navigate from pdf_rag/config/ up to project root
    return Path(__file__).parent.parent.parent


def _get_config_filename() -> str:
    """Get config filename based on APP_ENV environment variable."""
    app_env = os.environ.get("APP_ENV", "").lower()

    if app_env == "dev":
        return "config_dev.yaml"
    elif app_env == "test":
        return "config_test.yaml"
    else:
        return "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from environment-specific config file."""
    config_filename = _get_config_filename()
    config_path = _get_project_root() / config_filename

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}. "
            f"Set APP_ENV to 'dev' or 'test', or create {config_filename}."
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _get_required_env(key: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set. "
            f"Please add it to your .env file."
        )
    return value


def _get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get optional environment variable with default."""
    return os.environ.get(key, default)


def _get_port(server_section: dict) -> int:
    """Resolve the listening port. PORT in the environment wins over YAML."""
    raw_port = _get_optional_env("PORT") or server_section.get("port", DEFAULT_PORT)
    try:
        port = int(raw_port)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid port: {raw_port!r}") from e
    if not 0 < port < 65536:
        raise ConfigurationError(f"Port out of range: {port}")
    return port


def _get_positive_int(section: dict, key: str, default: int) -> int:
    """Read a positive integer setting from a YAML section."""
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"'{key}' must be a positive integer, got {value!r}")
    return value


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration."""
    host: str
    port: int


@dataclass(frozen=True)
class OpenAIConfig:
    """OpenAI embedding API configuration."""
    api_key: str
    embedding_model: str
    embedding_dimensions: int
    timeout_seconds: float


@dataclass(frozen=True)
class CosmosDBConfig:
    """Azure Cosmos DB container names for the cosmosdb storage backend."""
    database_name: str
    chunks_container: str
    uploads_container: str


@dataclass(frozen=True)
class StorageConfig:
    """Chunk store and file bucket configuration."""
    backend: str  # "sqlite" or "cosmosdb"
    database_url: str
    timeout_seconds: float
    piece_size_bytes: int
    cosmosdb: Optional[CosmosDBConfig]  # Only set when backend == "cosmosdb"


@dataclass(frozen=True)
class DocumentIntelligenceConfig:
    """Azure Document Intelligence configuration."""
    api_key: str
    endpoint: str
    model_id: str


@dataclass(frozen=True)
class ExtractionConfig:
    """PDF text extraction configuration."""
    backend: str  # "pdfplumber" or "document_intelligence"
    document_intelligence: Optional[DocumentIntelligenceConfig]


@dataclass(frozen=True)
class ChunkingConfig:
    """Text chunker configuration."""
    max_chars: int


@dataclass(frozen=True)
class IngestionConfig:
    """Ingestion pipeline configuration."""
    max_concurrency: int


@dataclass(frozen=True)
class QueryConfig:
    """Query service configuration."""
    default_top_n: int


@dataclass(frozen=True)
class ApiConfig:
    """HTTP API limits."""
    max_upload_bytes: int


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration container."""
    server: ServerConfig
    openai: OpenAIConfig
    storage: StorageConfig
    extraction: ExtractionConfig
    chunking: ChunkingConfig
    ingestion: IngestionConfig
    query: QueryConfig
    api: ApiConfig
    logging: LoggingConfig


def load_config() -> AppConfig:
    """
    Load and validate all application configuration.

    Loads from the YAML config file for non-sensitive settings and .env for
    API keys and the database connection string.
    Fails fast if required configuration is missing.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    # Load environment variables from .env file
    load_dotenv()

    # Load YAML configuration
    yaml_config = _load_yaml_config()

    # Build server config
    server_section = yaml_config.get("server", {})

    server_config = ServerConfig(
        host=server_section.get("host", "0.0.0.0"),
        port=_get_port(server_section),
    )

    # Build OpenAI config
    openai_section = yaml_config.get("openai", {})
    embedding_section = openai_section.get("embedding_model", {})

    openai_config = OpenAIConfig(
        api_key=_get_required_env("OPENAI_API_KEY"),
        embedding_model=embedding_section.get("name", "text-embedding-3-small"),
        embedding_dimensions=_get_positive_int(embedding_section, "dimensions", 1536),
        timeout_seconds=float(openai_section.get("timeout_seconds", 30)),
    )

    # Build storage config
    storage_section = yaml_config.get("storage", {})
    storage_backend = storage_section.get("backend", "sqlite")
    if storage_backend not in SUPPORTED_STORAGE_BACKENDS:
        raise ConfigurationError(
            f"Unsupported storage backend '{storage_backend}'. "
            f"Expected one of: {', '.join(SUPPORTED_STORAGE_BACKENDS)}"
        )

    # Build CosmosDB config (only if backend is cosmosdb)
    cosmosdb_config: Optional[CosmosDBConfig] = None
    if storage_backend == "cosmosdb":
        cosmosdb_section = storage_section.get("cosmosdb", {})
        cosmosdb_config = CosmosDBConfig(
            database_name=cosmosdb_section.get("database_name", "pdf_rag"),
            chunks_container=cosmosdb_section.get("chunks_container", "vector_chunks"),
            uploads_container=cosmosdb_section.get("uploads_container", "uploads"),
        )

    storage_config = StorageConfig(
        backend=storage_backend,
        database_url=_get_required_env("DATABASE_URL"),
        timeout_seconds=float(storage_section.get("timeout_seconds", 30)),
        piece_size_bytes=_get_positive_int(storage_section, "piece_size_bytes", 255 * 1024),
        cosmosdb=cosmosdb_config,
    )

    # Build extraction config
    extraction_section = yaml_config.get("extraction", {})
    extraction_backend = extraction_section.get("backend", "pdfplumber")
    if extraction_backend not in SUPPORTED_EXTRACTION_BACKENDS:
        raise ConfigurationError(
            f"Unsupported extraction backend '{extraction_backend}'. "
            f"Expected one of: {', '.join(SUPPORTED_EXTRACTION_BACKENDS)}"
        )

    document_intelligence_config: Optional[DocumentIntelligenceConfig] = None
    if extraction_backend == "document_intelligence":
        doc_intel_section = extraction_section.get("document_intelligence", {})
        document_intelligence_config = DocumentIntelligenceConfig(
            api_key=_get_required_env("DOCUMENT_INTELLIGENCE_KEY"),
            endpoint=doc_intel_section.get("endpoint", ""),
            model_id=doc_intel_section.get("model_id", "prebuilt-layout"),
        )

    extraction_config = ExtractionConfig(
        backend=extraction_backend,
        document_intelligence=document_intelligence_config,
    )

    chunking_config = ChunkingConfig(
        max_chars=_get_positive_int(yaml_config.get("chunking", {}), "max_chars", 1000),
    )

    ingestion_config = IngestionConfig(
        max_concurrency=_get_positive_int(yaml_config.get("ingestion", {}), "max_concurrency", 1),
    )

    query_config = QueryConfig(
        default_top_n=_get_positive_int(yaml_config.get("query", {}), "default_top_n", 3),
    )

    api_config = ApiConfig(
        max_upload_bytes=_get_positive_int(
            yaml_config.get("api", {}), "max_upload_bytes", 5 * 1024 * 1024
        ),
    )

    # Build Logging config
    logging_section = yaml_config.get("logging", {})

    logging_config = LoggingConfig(
        level=logging_section.get("level", "INFO"),
    )

    return AppConfig(
        server=server_config,
        openai=openai_config,
        storage=storage_config,
        extraction=extraction_config,
        chunking=chunking_config,
        ingestion=ingestion_config,
        query=query_config,
        api=api_config,
        logging=logging_config,
    )


# Module-level singleton for convenience
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the application configuration singleton.

    Lazy-loads configuration on first access.
    Config file is selected based on APP_ENV environment variable.

    Returns:
        AppConfig: Application configuration.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the config singleton. Useful for testing."""
    global _config
    _config = None
