from abc import ABC, abstractmethod
from dataclasses import dataclass

from civicrag.embedding.config import AbstractEmbeddingConfig


@dataclass
class Embeddings:
    vectors: list[list[float]]
    total_tokens: int


@dataclass
class EmbeddedQuery:
    vector: list[float]
    total_tokens: int


class AbstractEmbeddingProvider(ABC):
    def __init__(self, config: AbstractEmbeddingConfig) -> None:
        self.config = config

    @abstractmethod
    def embed(self, texts: list[str]) -> Embeddings: ...

    def embed_query(self, text: str) -> EmbeddedQuery:
        result = self.embed([text])
        return EmbeddedQuery(vector=result.vectors[0], total_tokens=result.total_tokens)
