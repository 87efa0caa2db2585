import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from civicrag.embedding.config import (
    AbstractEmbeddingConfig,
    EmbeddingProviderType,
    OpenAIEmbeddingConfig,
)
from civicrag.llm.config import ChatConfig
from civicrag.querylog.record import Pricing
from civicrag.speech.config import AzureServiceConfig
from civicrag.util import PROJECT_ROOT, load_yaml_config


def default_config_path() -> Path:
    override = os.getenv("CIVICRAG_CONFIG")
    if override:
        return Path(override)
    return PROJECT_ROOT / "config" / "civicrag.yaml"


@dataclass
class RetrievalConfig:
    top_k: int = 5
    similarity_threshold: float = 0.35  # minimum cosine similarity
    max_history_turns: int = 5
    max_context_tokens: int | None = None
    timeout_seconds: float | None = 10.0


@dataclass
class ChunkingConfig:
    size: int = 1200
    overlap: int = 150


@dataclass
class QueryLogConfig:
    enabled: bool = True
    ip_salt: str = "default-salt"
    pricing: Pricing = field(default_factory=Pricing)


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class LoggingConfig:
    json_output: bool = True
    log_level: str = "INFO"


@dataclass
class AppConfig:
    database_url: str
    tenant_id: str
    embedding: AbstractEmbeddingConfig
    chat: ChatConfig
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    query_log: QueryLogConfig = field(default_factory=QueryLogConfig)
    translator: AzureServiceConfig = field(default_factory=AzureServiceConfig)
    speech: AzureServiceConfig = field(default_factory=AzureServiceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | None = None) -> AppConfig:
    raw = load_yaml_config(
        path or default_config_path(),
        required_vars={"DATABASE_URL"},
    )
    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> AppConfig:
    database_url = raw.get("database_url", "")
    if not database_url:
        raise ValueError("Missing 'database_url' in config")

    tenant_id = str(raw.get("tenant_id", "") or "")
    if not tenant_id:
        raise ValueError("Missing 'tenant_id' in config")

    if "embedding" not in raw:
        raise ValueError("Missing 'embedding' section in config")
    if "chat" not in raw:
        raise ValueError("Missing 'chat' section in config")

    retrieval_raw = raw.get("retrieval", {})
    chunking_raw = raw.get("chunking", {})
    server_raw = raw.get("server", {})
    logging_raw = raw.get("logging", {})

    max_context_tokens = retrieval_raw.get("max_context_tokens")
    timeout_seconds = retrieval_raw.get("timeout_seconds", 10.0)

    return AppConfig(
        database_url=database_url,
        tenant_id=tenant_id,
        embedding=_parse_embedding_config(raw["embedding"]),
        chat=ChatConfig.from_dict(raw["chat"]),
        retrieval=RetrievalConfig(
            top_k=int(retrieval_raw.get("top_k", 5)),
            similarity_threshold=float(retrieval_raw.get("similarity_threshold", 0.35)),
            max_history_turns=int(retrieval_raw.get("max_history_turns", 5)),
            max_context_tokens=int(max_context_tokens) if max_context_tokens else None,
            timeout_seconds=float(timeout_seconds) if timeout_seconds else None,
        ),
        chunking=ChunkingConfig(
            size=int(chunking_raw.get("size", 1200)),
            overlap=int(chunking_raw.get("overlap", 150)),
        ),
        query_log=_parse_query_log(raw.get("query_log", {})),
        translator=AzureServiceConfig.from_dict(raw.get("translator")),
        speech=AzureServiceConfig.from_dict(raw.get("speech")),
        server=ServerConfig(
            host=server_raw.get("host", "0.0.0.0"),
            port=int(server_raw.get("port", 8000)),
        ),
        logging=LoggingConfig(
            json_output=bool(logging_raw.get("json_output", True)),
            log_level=str(logging_raw.get("log_level", "INFO")),
        ),
    )


def _parse_embedding_config(raw: dict[str, Any]) -> AbstractEmbeddingConfig:
    provider_key = raw.get("provider", "openai")
    provider_type = EmbeddingProviderType(provider_key)

    model = raw.get("model", "")
    if not model:
        raise ValueError("Missing 'embedding.model' in config")

    dimensions = int(raw.get("dimensions", 1536))
    provider_raw = raw.get(provider_key, {})

    match provider_type:
        case EmbeddingProviderType.OPENAI:
            return OpenAIEmbeddingConfig.from_dict(provider_raw, model, dimensions)


def _parse_query_log(raw: dict[str, Any]) -> QueryLogConfig:
    pricing_raw = raw.get("pricing", {})
    defaults = Pricing()
    return QueryLogConfig(
        enabled=bool(raw.get("enabled", True)),
        ip_salt=raw.get("ip_salt") or "default-salt",
        pricing=Pricing(
            embedding_per_1m=float(pricing_raw.get("embedding_per_1m", defaults.embedding_per_1m)),
            chat_input_per_1m=float(
                pricing_raw.get("chat_input_per_1m", defaults.chat_input_per_1m)
            ),
            chat_output_per_1m=float(
                pricing_raw.get("chat_output_per_1m", defaults.chat_output_per_1m)
            ),
        ),
    )
