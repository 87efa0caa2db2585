from civicrag.embedding.adapters import OpenAIEmbeddingProvider
from civicrag.embedding.config import (
    AbstractEmbeddingConfig,
    EmbeddingProviderType,
    OpenAIEmbeddingConfig,
)
from civicrag.embedding.provider import AbstractEmbeddingProvider, EmbeddedQuery, Embeddings


def create_embedding_provider(config: AbstractEmbeddingConfig) -> AbstractEmbeddingProvider:
    match config:
        case OpenAIEmbeddingConfig():
            return OpenAIEmbeddingProvider(config)
        case _:
            raise ValueError(f"Unknown embedding config: {type(config).__name__}")


__all__ = [
    "AbstractEmbeddingConfig",
    "AbstractEmbeddingProvider",
    "EmbeddedQuery",
    "EmbeddingProviderType",
    "Embeddings",
    "OpenAIEmbeddingConfig",
    "OpenAIEmbeddingProvider",
    "create_embedding_provider",
]
