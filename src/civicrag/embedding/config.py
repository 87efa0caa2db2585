from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from civicrag.errors import openai_not_configured


class EmbeddingProviderType(StrEnum):
    OPENAI = "openai"


@dataclass
class AbstractEmbeddingConfig(ABC):
    model: str
    dimensions: int

    @classmethod
    @abstractmethod
    def from_dict(cls, raw: dict[str, Any], model: str, dimensions: int) -> "AbstractEmbeddingConfig": ...


@dataclass
class OpenAIEmbeddingConfig(AbstractEmbeddingConfig):
    api_key: str
    api_url: str | None = None
    project: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_dict(cls, raw: dict[str, Any], model: str, dimensions: int) -> "OpenAIEmbeddingConfig":
        api_key = raw.get("api_key", "")
        if not api_key:
            raise openai_not_configured("embedding.openai.api_key")

        return cls(
            model=model,
            dimensions=dimensions,
            api_key=api_key,
            api_url=raw.get("api_url") or None,
            project=raw.get("project") or None,
            timeout_seconds=float(raw.get("timeout_seconds", 30.0)),
        )
